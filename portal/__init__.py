import logging

from firebase_admin.exceptions import FirebaseError
from flask import Flask, jsonify, request, redirect
from flask_wtf.csrf import CSRFProtect, CSRFError
from google.api_core.exceptions import GoogleAPIError

from config import Config
from portal.errors import PortalError

csrf = CSRFProtect()

API_PREFIXES = ('/auth', '/admin', '/app', '/sessions', '/homework', '/quizzes',
                '/resources', '/mentors', '/mentorship', '/notifications', '/gita',
                '/onboarding', '/nav', '/health')


def _register_error_handlers(app):
    @app.errorhandler(PortalError)
    def handle_portal_error(error):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(CSRFError)
    def handle_csrf_error(error):
        return jsonify({'error': error.description}), 400

    @app.errorhandler(GoogleAPIError)
    @app.errorhandler(FirebaseError)
    def handle_backend_error(error):
        app.logger.exception('Backend request failed: %s', error)
        return jsonify({'error': 'The request could not be completed. Please try again.'}), 500

    @app.errorhandler(404)
    def handle_not_found(error):
        # Unknown SPA paths go back to the caller's role-appropriate root.
        if request.method == 'GET' and not request.path.startswith(API_PREFIXES):
            from portal.decorators import get_current_user, landing_path
            return redirect(landing_path(get_current_user()))
        return jsonify({'error': 'Not found'}), 404


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.logger.setLevel(getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO))

    csrf.init_app(app)

    from portal.firebase_init import init_firebase
    init_firebase(app.config)

    from portal.services.gemini import DevotionalContent
    app.extensions['devotional_content'] = DevotionalContent.from_config(app.config)

    from portal.decorators import load_current_user

    @app.before_request
    def before_request():
        load_current_user()

    _register_error_handlers(app)

    from portal.routes import (
        main, auth, onboarding, dashboard, devotees, profile, sessions,
        homework, quizzes, resources, mentorship, chanting, notifications, gita
    )
    app.register_blueprint(main.bp)
    app.register_blueprint(auth.bp)
    app.register_blueprint(onboarding.bp)
    app.register_blueprint(dashboard.bp)
    app.register_blueprint(devotees.bp)
    app.register_blueprint(profile.bp)
    app.register_blueprint(sessions.bp)
    app.register_blueprint(homework.bp)
    app.register_blueprint(quizzes.bp)
    app.register_blueprint(resources.bp)
    app.register_blueprint(mentorship.bp)
    app.register_blueprint(chanting.bp)
    app.register_blueprint(notifications.bp)
    app.register_blueprint(gita.bp)

    return app
