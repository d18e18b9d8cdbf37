import logging

from flask import Flask, send_from_directory
from flask_cors import CORS

from charter.errors import error_body, register_error_handlers
from charter.extensions import db, jwt, migrate
from charter.services.gateways import GatewayRegistry, build_gateways
from charter.services.notification import NotificationDispatcher
from config import Config


def configure_logging(app):
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s'
    )
    app.logger.setLevel(level)


def configure_jwt(app):
    @jwt.unauthorized_loader
    def missing_token(reason):
        return error_body('Please login to continue'), 401

    @jwt.invalid_token_loader
    def invalid_token(reason):
        return error_body('Invalid access token'), 401

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return error_body('Access token has expired'), 401


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)
    configure_logging(app)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    CORS(app, origins=[app.config['FRONTEND_URL']], supports_credentials=True)
    configure_jwt(app)

    # Payment gateways and mailer are built once from config
    registry = GatewayRegistry.from_config(app.config)
    app.extensions['gateway_registry'] = registry
    app.extensions['payment_gateways'] = build_gateways(registry)
    app.extensions['notification_dispatcher'] = NotificationDispatcher.from_config(app.config)
    app.logger.info(f"Enabled payment gateways: {[g.id for g in registry.list_enabled()] or 'none'}")

    register_error_handlers(app)

    # Register Blueprints
    from charter.api import register_blueprints
    register_blueprints(app)

    @app.route('/receipts/<path:filename>')
    def receipt_file(filename):
        return send_from_directory(app.config['RECEIPTS_DIR'], filename, mimetype='application/pdf')

    from charter.db_init.cli import register_commands
    register_commands(app)

    return app
