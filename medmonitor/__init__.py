import logging

from flask import Flask, jsonify
from flask_cors import CORS
from flask_migrate import Migrate
from werkzeug.exceptions import HTTPException

from medmonitor.config import Config
from medmonitor.errors import DispenserError
from medmonitor.models import db
from medmonitor.utils.timezone import set_timezone

migrate = Migrate()
cors = CORS()

logger = logging.getLogger(__name__)


def register_error_handlers(app):
    @app.errorhandler(DispenserError)
    def handle_dispenser_error(error):
        db.session.rollback()
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        if isinstance(error, HTTPException):
            return jsonify({'status': 'error', 'message': error.description}), error.code

        db.session.rollback()
        logger.exception('Unhandled error: %s', error)
        body = {'status': 'error', 'message': 'Internal server error'}
        if app.debug or app.config.get('APP_ENV') != 'production':
            body['details'] = str(error)
        return jsonify(body), 500


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    logging.basicConfig(
        level=app.config.get('LOG_LEVEL', 'INFO'),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )
    set_timezone(app.config['TIMEZONE'])

    # Initialize database
    db.init_app(app)

    # Initialize Flask-Migrate
    migrate.init_app(app, db)

    # Allow the dashboard origins to call the API
    cors.init_app(
        app,
        resources={r'/*': {'origins': app.config['CORS_ORIGINS']}},
        supports_credentials=True
    )

    # Register blueprints
    from medmonitor.routes.main import main_bp
    from medmonitor.api.routes import api_bp
    app.register_blueprint(main_bp)
    app.register_blueprint(api_bp)

    register_error_handlers(app)

    from medmonitor.cli import register_commands
    register_commands(app)

    # Import models to register them with SQLAlchemy
    with app.app_context():
        from medmonitor.models.automation import Automation
        from medmonitor.models.history import HistoryRecord
        from medmonitor.models.inventory import InventoryCounter
        db.create_all()

    return app
