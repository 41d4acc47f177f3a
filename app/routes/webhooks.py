from flask import Blueprint, request, jsonify
from app.services.webhook_service import WebhookService
from app.utils.exceptions import BackgroundCheckError
from app.utils.logger import get_logger

bp = Blueprint('webhooks', __name__)
logger = get_logger(__name__)

webhook_service = WebhookService()


@bp.route('/checkr', methods=['POST'])
def checkr_webhook():
    """Handle Checkr webhook events"""
    payload = request.get_data()
    signature = request.headers.get('X-Checkr-Signature')

    if not signature:
        return jsonify({'error': 'No signature header'}), 400
    if not webhook_service.verify_checkr_signature(payload, signature):
        return jsonify({'error': 'Invalid signature'}), 400

    try:
        result = webhook_service.process_checkr_event(request.get_json(silent=True) or {})
        return jsonify({'received': True, 'result': result}), 200
    except BackgroundCheckError as e:
        logger.error(f"Error applying Checkr webhook: {e.message}")
        return jsonify(e.to_dict()), e.http_status
    except Exception as e:
        logger.error(f"Error processing Checkr webhook: {str(e)}")
        return jsonify({'error': 'Failed to process webhook'}), 500


@bp.route('/certn', methods=['POST'])
def certn_webhook():
    """Handle Certn webhook events"""
    payload = request.get_data()
    signature = request.headers.get('X-Certn-Signature')

    if not signature:
        return jsonify({'error': 'No signature header'}), 400
    if not webhook_service.verify_certn_signature(payload, signature):
        return jsonify({'error': 'Invalid signature'}), 400

    try:
        result = webhook_service.process_certn_event(request.get_json(silent=True) or {})
        return jsonify({'received': True, 'result': result}), 200
    except BackgroundCheckError as e:
        logger.error(f"Error applying Certn webhook: {e.message}")
        return jsonify(e.to_dict()), e.http_status
    except Exception as e:
        logger.error(f"Error processing Certn webhook: {str(e)}")
        return jsonify({'error': 'Failed to process webhook'}), 500
