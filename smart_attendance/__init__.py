"""Smart Attendance - Application Factory."""
import logging
import os
from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_jwt_extended import JWTManager
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

# Initialize extensions
db = SQLAlchemy()
migrate = Migrate()
jwt = JWTManager()
limiter = Limiter(key_func=get_remote_address)

def create_app(config_name: str = None) -> Flask:
    """Application factory pattern."""
    app = Flask(__name__)

    # Load configuration
    from smart_attendance.config import get_config
    config_class = get_config(config_name)
    app.config.from_object(config_class)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    limiter.init_app(app)

    # Configure CORS
    CORS(app, origins=app.config.get('CORS_ORIGINS', ["*"]))

    # Setup logging
    setup_logging(app)

    # Register blueprints
    register_blueprints(app)

    # Register error handlers
    register_error_handlers(app)

    # Setup database
    setup_database(app)

    # Add CLI commands
    register_commands(app)

    # Add health check
    @app.route('/health')
    def health_check():
        return jsonify({
            'status': 'healthy',
            'service': 'Smart Attendance',
            'version': '1.0.0'
        })

    return app

def register_blueprints(app: Flask) -> None:
    """Register all application blueprints."""
    from smart_attendance.api.sessions import sessions_bp
    from smart_attendance.api.attendance import attendance_bp
    from smart_attendance.api.reports import reports_bp
    from smart_attendance.utils.swagger import API_URL, SWAGGER_URL, generate_swagger_spec, get_swagger_blueprint

    app.register_blueprint(sessions_bp, url_prefix='/api/sessions')
    app.register_blueprint(attendance_bp, url_prefix='/api/attendance')
    app.register_blueprint(reports_bp, url_prefix='/api/reports')

    # Swagger UI
    @app.route(API_URL)
    def swagger_spec():
        """Serve Swagger/OpenAPI specification."""
        return jsonify(generate_swagger_spec())

    app.register_blueprint(get_swagger_blueprint(), url_prefix=SWAGGER_URL)

def register_error_handlers(app: Flask) -> None:
    """Register error handlers."""
    from smart_attendance.utils.errors import AttendanceError
    from smart_attendance.utils.helpers import attendance_error_response, error_response, handle_error
    from smart_attendance.utils.validators import ValidationError
    from werkzeug.exceptions import HTTPException

    @app.errorhandler(AttendanceError)
    def attendance_error(error):
        return attendance_error_response(error)

    @app.errorhandler(ValidationError)
    def validation_error(error):
        return error_response(error.message, error.status_code, errors=error.errors)

    @app.errorhandler(404)
    def not_found(error):
        return handle_error("Resource not found", 404)

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        app.logger.error('Unhandled error: %s', error)
        return handle_error("Internal server error", 500)

    @app.errorhandler(HTTPException)
    def handle_exception(e):
        return handle_error(e.description, e.code)

    # JWT error handlers
    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return error_response('Token has expired', 401)

    @jwt.invalid_token_loader
    def invalid_token_callback(error):
        return error_response('Invalid token', 401)

    @jwt.unauthorized_loader
    def missing_token_callback(error):
        return error_response('Authorization token required', 401)

def setup_logging(app: Flask) -> None:
    """Setup application logging."""
    app.logger.setLevel(app.config.get('LOG_LEVEL', logging.INFO))

    if not app.debug and not app.testing:
        log_file = app.config.get('LOG_FILE', 'logs/app.log')
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)

        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(logging.INFO)
        app.logger.addHandler(file_handler)

        app.logger.info('Smart Attendance startup')

def setup_database(app: Flask) -> None:
    """Setup database connections."""
    with app.app_context():
        # Import all models
        from smart_attendance.models import (
            User, Course, Section, SectionEnrollment,
            AttendanceSession, AttendanceRecord, SessionSummary
        )

def register_commands(app: Flask) -> None:
    """Register CLI commands."""
    import click

    @app.cli.command()
    def create_db():
        """Create database tables."""
        db.create_all()
        click.echo('Database tables created.')

    @app.cli.command()
    @click.option('--yes', is_flag=True, help='Do not ask for confirmation')
    def drop_db(yes):
        """Drop all database tables."""
        if yes or click.confirm('Are you sure you want to drop all tables?'):
            db.drop_all()
            click.echo('Database tables dropped.')

    @app.cli.command()
    def seed_db():
        """Seed database with demo data."""
        from smart_attendance.services.seed_service import SeedService

        summary = SeedService.seed_all()
        click.echo(
            f"Seeded course {summary['course']} with {summary['students']} students "
            f"and session {summary['session_id']}."
        )

    @app.cli.command()
    def close_expired():
        """Close active sessions whose end time has passed."""
        from smart_attendance.services.session_service import SessionLifecycle

        closed = SessionLifecycle().close_expired()
        click.echo(f'Closed {len(closed)} expired session(s).')
