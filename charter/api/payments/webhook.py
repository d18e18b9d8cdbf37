from flask import current_app, jsonify, request

from charter.api.payments import payment_bp as bp
from charter.services.payment import get_payment_orchestrator

# ==================== WEBHOOK ENDPOINTS ====================

def _handle(gateway_id):
    result = get_payment_orchestrator().handle_webhook(gateway_id, request.get_data(), request.headers)
    if result.get('duplicate'):
        current_app.logger.info(f"Acknowledged duplicate {gateway_id} webhook")
    return jsonify(result), 200


@bp.route('/webhook/stripe', methods=['POST'])
def stripe_webhook():
    """Stripe events, verified against the Stripe-Signature header"""
    return _handle('stripe')


@bp.route('/webhook/paypal', methods=['POST'])
def paypal_webhook():
    """PayPal events, verified through PayPal's signature verification API"""
    return _handle('paypal')
