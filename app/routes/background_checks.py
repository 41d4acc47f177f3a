from datetime import datetime, timezone
from flask import Blueprint, request, jsonify
from app.middleware.auth import require_auth, require_recruiter, operator_identity
from app.models.intake import CandidateIntake, ConsentRecord
from app.services.background_check_service import BackgroundCheckService
from app.utils.exceptions import BackgroundCheckError
from app.utils.logger import get_logger

bp = Blueprint('background_checks', __name__)
logger = get_logger(__name__)
background_check_service = BackgroundCheckService()


def _error_response(error: BackgroundCheckError):
    return jsonify(error.to_dict()), error.http_status


def _parse_timestamp(value):
    """ISO timestamp to naive UTC; None when absent or unreadable"""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    except ValueError:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


@bp.route('/packages', methods=['GET'])
@require_auth
def list_packages(current_user):
    """List available screening packages"""
    packages = background_check_service.catalog.all()
    return jsonify({'packages': [p.to_dict() for p in packages]}), 200


@bp.route('', methods=['POST'])
@require_auth
@require_recruiter
def submit_background_check(current_user):
    """Initiate a background check for an application"""
    try:
        data = request.get_json(silent=True) or {}
        application_id = data.get('application_id')
        if not application_id:
            return jsonify({'error': 'application_id is required', 'field': 'application_id'}), 400

        operator = operator_identity(current_user)
        consent_data = data.get('consent') or {}
        # The affirming operator is whoever holds the token
        consent = ConsentRecord(
            obtained=consent_data.get('obtained') is True,
            affirmed_by=operator,
            affirmed_at=_parse_timestamp(consent_data.get('affirmed_at'))
        )
        intake = CandidateIntake.from_dict(data.get('candidate') or {})

        check, created = background_check_service.initiate(
            str(application_id),
            data.get('package_id'),
            intake,
            consent,
            initiated_by=operator
        )

        return jsonify({
            'success': True,
            'created': created,
            'background_check': check.to_dict()
        }), 201 if created else 200

    except BackgroundCheckError as e:
        return _error_response(e)
    except Exception as e:
        logger.error(f"Error creating background check: {str(e)}")
        return jsonify({'error': 'Failed to create background check'}), 500


@bp.route('', methods=['GET'])
@require_auth
def get_application_background_check(current_user):
    """Get the current background check for an application"""
    application_id = request.args.get('application_id')
    if not application_id:
        return jsonify({'error': 'application_id is required', 'field': 'application_id'}), 400

    try:
        if request.args.get('history') == 'true':
            checks = background_check_service.list_by_application(application_id)
            return jsonify({'background_checks': [c.to_dict() for c in checks]}), 200

        check = background_check_service.get_by_application(application_id)
        return jsonify({'background_check': check.to_dict()}), 200

    except BackgroundCheckError as e:
        return _error_response(e)
    except Exception as e:
        logger.error(f"Error fetching background check: {str(e)}")
        return jsonify({'error': 'Failed to fetch background check'}), 500


@bp.route('/<int:check_id>', methods=['GET'])
@require_auth
def get_background_check(current_user, check_id):
    """Get a background check by id"""
    try:
        check = background_check_service.get(check_id)
        return jsonify({'background_check': check.to_dict()}), 200

    except BackgroundCheckError as e:
        return _error_response(e)
    except Exception as e:
        logger.error(f"Error fetching background check {check_id}: {str(e)}")
        return jsonify({'error': 'Failed to fetch background check'}), 500


@bp.route('/<int:check_id>/refresh', methods=['POST'])
@require_auth
def refresh_background_check(current_user, check_id):
    """Pull the latest status from the screening provider"""
    try:
        before = background_check_service.get(check_id)
        check = background_check_service.refresh(check_id)

        logger.info(f"Background check {check_id} refreshed by {operator_identity(current_user)}")
        return jsonify({
            'success': True,
            'status_changed': before.status != check.status,
            'background_check': check.to_dict()
        }), 200

    except BackgroundCheckError as e:
        return _error_response(e)
    except Exception as e:
        logger.error(f"Error refreshing background check {check_id}: {str(e)}")
        return jsonify({'error': 'Failed to refresh background check'}), 500
