from flask import Blueprint, request, jsonify
from app.middleware.auth import require_auth, require_admin, operator_identity
from app.services.integration_service import IntegrationService
from app.utils.exceptions import BackgroundCheckError
from app.utils.logger import get_logger

bp = Blueprint('integrations', __name__)
logger = get_logger(__name__)
integration_service = IntegrationService()


@bp.route('/screening/status', methods=['GET'])
@require_auth
def screening_status(current_user):
    """Whether a screening provider is connected"""
    try:
        include_account = request.args.get('account') == 'true'
        return jsonify(integration_service.status(include_account=include_account)), 200
    except Exception as e:
        logger.error(f"Error checking screening integration status: {str(e)}")
        return jsonify({'error': 'Failed to check screening integration status'}), 500


@bp.route('/screening/connect', methods=['POST'])
@require_auth
@require_admin
def connect_screening(current_user):
    """Store (and verify) screening provider credentials"""
    data = request.get_json(silent=True) or {}
    provider = data.get('provider', 'certn')

    try:
        result = integration_service.connect(
            provider,
            data.get('credentials') or {},
            updated_by=operator_identity(current_user),
            verify=data.get('verify', True) is not False
        )
        return jsonify(result), 200

    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    except BackgroundCheckError as e:
        return jsonify(e.to_dict()), 400
    except Exception as e:
        logger.error(f"Error connecting screening provider: {str(e)}")
        return jsonify({'error': 'Failed to connect screening provider'}), 500


@bp.route('/screening/connect', methods=['DELETE'])
@require_auth
@require_admin
def disconnect_screening(current_user):
    """Remove stored screening provider credentials"""
    provider = request.args.get('provider') or integration_service.get_provider_name()
    try:
        removed = integration_service.disconnect(provider, updated_by=operator_identity(current_user))
        return jsonify({'disconnected': removed, 'provider': provider}), 200
    except Exception as e:
        logger.error(f"Error disconnecting screening provider: {str(e)}")
        return jsonify({'error': 'Failed to disconnect screening provider'}), 500


@bp.route('/screening/test', methods=['GET'])
@require_auth
@require_admin
def test_screening(current_user):
    """Make a test call with the stored credentials"""
    try:
        return jsonify({'success': True, **integration_service.test_connection()}), 200
    except BackgroundCheckError as e:
        return jsonify(e.to_dict()), e.http_status
    except Exception as e:
        logger.error(f"Error testing screening connection: {str(e)}")
        return jsonify({'error': 'Failed to test screening connection'}), 500
