from flask import current_app

from charter.api.admin import admin_bp
from charter.errors import CharterError
from charter.services.payment import get_payment_orchestrator
from charter.utils.api_response import APIResponse
from charter.utils.audit_logging import AuditLogger
from charter.utils.decorators import admin_required


@admin_bp.route('/gateways/<string:gateway_id>/test', methods=['POST'])
@admin_required
def test_gateway(current_user, gateway_id):
    """Check the provider accepts the configured credentials"""
    try:
        result = get_payment_orchestrator().test_gateway(gateway_id)
    except CharterError as e:
        AuditLogger.log_action(current_user.id, 'gateway_test_failed', 'gateway', gateway_id, e.message)
        raise

    AuditLogger.log_action(current_user.id, 'gateway_tested', 'gateway', gateway_id, 'Connectivity check passed')
    current_app.logger.info(f"Gateway {gateway_id} tested by {current_user.id}")
    return APIResponse.success(result, 'Gateway connection successful')
