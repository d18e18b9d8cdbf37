import logging

from flask import has_request_context, request

from charter.extensions import db
from charter.models import AuditLog

logger = logging.getLogger(__name__)


class AuditLogger:
    """Log important actions for audit trail"""

    @staticmethod
    def log_action(
        user_id: str,
        action: str,
        entity_type: str = None,
        entity_id: str = None,
        description: str = None,
        changes: dict = None
    ):
        ip_address = None
        user_agent = None
        if has_request_context():
            ip_address = request.remote_addr
            user_agent = (request.headers.get('User-Agent') or '')[:500]

        log = AuditLog(
            user_id=user_id,
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id) if entity_id is not None else None,
            description=description,
            changes=changes,
            ip_address=ip_address,
            user_agent=user_agent
        )
        db.session.add(log)
        db.session.commit()
        logger.info(f"Audit: {action} {entity_type or ''} {entity_id or ''} by {user_id}")
        return log
