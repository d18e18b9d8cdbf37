from flask import request

from charter.api.payments import payment_bp as bp
from charter.services.payment import get_payment_orchestrator
from charter.utils.api_response import APIResponse
from charter.utils.audit_logging import AuditLogger
from charter.utils.decorators import admin_required
from charter.utils.validation import Validator

# ==================== REFUND ENDPOINTS ====================

@bp.route('/<string:payment_id>/refund', methods=['POST'])
@admin_required
def refund_payment(current_user, payment_id):
    """
    Refund a completed payment in full through its gateway

    Request Body (optional):
    {
        "reason": "Customer requested cancellation"
    }
    """
    data = request.get_json(silent=True) or {}
    reason = Validator.sanitize_input(data.get('reason'), max_length=500) or None

    intent = get_payment_orchestrator().refund_intent(payment_id, reason=reason, actor_id=current_user.id)

    AuditLogger.log_action(current_user.id, 'payment_refunded', 'payment', intent.id,
                           f"Refunded payment {intent.id} for booking #{intent.booking_id}",
                           changes={'reason': reason} if reason else None)
    return APIResponse.success(intent.to_dict(), 'Payment refunded')
