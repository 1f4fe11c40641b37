import os
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException
from config.config import config
from educhain.database import init_db
from educhain.errors import EduChainError
from educhain.utils.logger import get_logger

logger = get_logger(__name__)


def create_app(config_name=None):
    """Application factory"""
    config_name = config_name or os.environ.get('FLASK_ENV', 'default')

    app = Flask(__name__)
    app.config.from_object(config.get(config_name, config['default']))

    init_db()

    from educhain.routes import auth, dao, homeworks, profiles, questions
    app.register_blueprint(auth.bp, url_prefix='/api/auth')
    app.register_blueprint(profiles.bp, url_prefix='/api/profiles')
    app.register_blueprint(homeworks.bp, url_prefix='/api/homeworks')
    app.register_blueprint(questions.bp, url_prefix='/api/questions')
    app.register_blueprint(dao.bp, url_prefix='/api/dao')

    register_error_handlers(app)

    @app.route('/api/health', methods=['GET'])
    def health():
        return jsonify({'status': 'ok'}), 200

    logger.info(f"EduChain app created with '{config_name}' config")
    return app


def register_error_handlers(app):
    @app.errorhandler(EduChainError)
    def handle_domain_error(error):
        return jsonify({'error': error.message}), error.status_code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        if isinstance(error, HTTPException):
            return jsonify({'error': error.description}), error.code
        logger.exception(f"Unhandled error: {str(error)}")
        return jsonify({'error': EduChainError.message}), 500
