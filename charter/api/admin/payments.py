from flask import request

from charter.api.admin import admin_bp
from charter.services.payment import get_payment_orchestrator
from charter.utils.api_response import APIResponse
from charter.utils.decorators import admin_required

# ===== PAYMENT MANAGEMENT =====

@admin_bp.route('/payments', methods=['GET'])
@admin_required
def list_payments(current_user):
    """
    All payments, newest first

    Query Parameters:
        status: pending | processing | completed | failed | refunded (optional)
        gatewayId: stripe | paypal | square | tap (optional)
    """
    intents = get_payment_orchestrator().list_intents(request.args.get('status'),
                                                      request.args.get('gatewayId'))
    payments = []
    for intent in intents:
        data = intent.to_dict()
        booking = intent.booking
        data['booking'] = {
            'id': booking.id,
            'status': booking.status.value,
            'contactName': booking.recipient_name,
            'contactEmail': booking.recipient_email,
        }
        payments.append(data)
    return APIResponse.success(payments)
