import os
from flask import Flask, jsonify
from config.config import config
from app.database import init_db
from app.utils.logger import get_logger

logger = get_logger(__name__)


def create_app(config_name=None):
    """Application factory"""
    config_name = config_name or os.environ.get('FLASK_ENV', 'default')
    app_config = config.get(config_name, config['default'])

    app = Flask(__name__)
    app.config.from_object(app_config)

    init_db()

    from app.routes import background_checks, integrations, webhooks
    app.register_blueprint(background_checks.bp, url_prefix='/api/background-checks')
    app.register_blueprint(integrations.bp, url_prefix='/api/integrations')
    app.register_blueprint(webhooks.bp, url_prefix='/api/webhooks')

    @app.route('/health', methods=['GET'])
    def health():
        return jsonify({'status': 'ok'}), 200

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'error': 'Not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'error': 'Method not allowed'}), 405

    if app_config.STATUS_POLL_ENABLED and not app_config.TESTING:
        from app.services.polling_service import PollingService
        PollingService().start()

    logger.info(f"Screening service started ({config_name})")
    return app
