"""
Web front for the CitizenWatch client.

The Flask app plays the part of the citizen page: it forwards login, logout
and report submissions to the client services and serves the rendered feed
as JSON. Each browser session is served by its own CitizenClient.
"""
from flask import Flask, jsonify, request, session, has_request_context
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
import os
import uuid
import logging

from citizenwatch.client import CitizenClient, ClientSessions
from citizenwatch.config import config
from citizenwatch.errors import ValidationError
from citizenwatch.firebase_setup import get_web_config, initialize_firebase
from citizenwatch.services.error_handler import USER_MESSAGES, ErrorHandler, ErrorType
from citizenwatch.services.feed_renderer import FeedRenderer
from citizenwatch.services.session_store import MemoryStorage

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ErrorType.AUTH: 401,
    ErrorType.VALIDATION: 400,
    ErrorType.NETWORK: 502,
    ErrorType.SERVER: 502,
    ErrorType.UNKNOWN: 500
}


def default_client_factory(cfg):
    """Per-session clients keep their access token in memory only"""
    def factory(csrf_token_provider):
        return CitizenClient(cfg, storage=MemoryStorage(), csrf_token_provider=csrf_token_provider)
    return factory


def create_app(config_name=None, client_factory=None):
    """
    Build the Flask app.

    Every browser session gets its own CitizenClient and FeedRenderer, found
    through an opaque id in Flask's signed session cookie.

    Args:
        config_name: Key into ``config`` (defaults to FLASK_ENV, then 'default')
        client_factory: Callable taking a CSRF token provider and returning a
                        CitizenClient for a new browser session

    Returns:
        Flask: The configured application
    """
    cfg = config[config_name or os.getenv('FLASK_ENV', 'default')]

    app = Flask(__name__)
    app.config.from_object(cfg)

    CORS(app, origins=cfg.CORS_ORIGINS, supports_credentials=True)

    limiter = Limiter(
        get_remote_address,
        app=app,
        default_limits=["200 per day", "50 per hour"],
        storage_uri=cfg.RATELIMIT_STORAGE_URI,
        enabled=cfg.RATE_LIMIT_ENABLED
    )
    # Route limits only hold a weak reference to the limiter
    app.extensions['citizenwatch_limiter'] = limiter

    def forwarded_csrf_token():
        # The page's own CSRF token wins over the configured one
        if has_request_context() and request.headers.get('X-CSRF-Token'):
            return request.headers['X-CSRF-Token']
        return cfg.CSRF_TOKEN

    client_factory = client_factory or default_client_factory(cfg)

    def open_client_session():
        citizen = client_factory(forwarded_csrf_token)
        return citizen, FeedRenderer(citizen.state)

    sessions = ClientSessions(
        open_client_session,
        max_sessions=cfg.MAX_CLIENT_SESSIONS,
        on_evict=lambda entry: entry[1].close()
    )

    app.extensions['citizenwatch_sessions'] = sessions
    app.extensions['citizenwatch_firebase'] = initialize_firebase(cfg)

    def current_client():
        """(CitizenClient, FeedRenderer) of the calling browser session"""
        if 'sid' not in session:
            session['sid'] = uuid.uuid4().hex
        return sessions.get(session['sid'])

    def json_object_body():
        data = request.get_json(silent=True)
        return data if isinstance(data, dict) and data else None

    def error_response(error):
        """Translate a service failure (already handled) into a JSON response"""
        error_type = ErrorHandler.classify(error)
        body = {
            'error': USER_MESSAGES[error_type],
            'type': error_type.value
        }
        if isinstance(error, ValidationError) and error.errors:
            body['fields'] = error.errors
        return jsonify(body), ERROR_STATUS[error_type]

    @app.after_request
    def set_security_headers(response):
        """Baseline security headers on every response"""
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'
        response.headers['Permissions-Policy'] = 'geolocation=(self), camera=(), microphone=(), payment=()'
        return response

    # ===== AUTHENTICATION ENDPOINTS =====

    @app.route('/api/auth/login', methods=['POST'])
    @limiter.limit("5 per 15 minutes")
    def login_user():
        """Log in with email/password"""
        client, _ = current_client()
        data = json_object_body()
        if data is None:
            return jsonify({'error': 'Request body is required'}), 400

        try:
            user = client.auth.login(data.get('email', ''), data.get('password', ''))
            return jsonify({'user': user.to_dict()})
        except Exception as e:
            return error_response(e)

    @app.route('/api/auth/register', methods=['POST'])
    @limiter.limit("3 per hour")
    def register_user():
        """Register a new account and sign it in"""
        client, _ = current_client()
        data = json_object_body()
        if data is None:
            return jsonify({'error': 'Request body is required'}), 400

        try:
            user = client.auth.register(data.get('email', ''), data.get('password', ''), data.get('name', ''))
            return jsonify({'user': user.to_dict()}), 201
        except Exception as e:
            return error_response(e)

    @app.route('/api/auth/logout', methods=['POST'])
    def logout_user():
        """
        Log out. The local session is gone either way, so a failed backend
        call still answers 200.
        """
        client, _ = current_client()
        try:
            client.auth.logout()
            return jsonify({'status': 'logged_out'}), 200
        except Exception as e:
            logger.warning(f"Backend logout failed, local session cleared: {e}")
            return jsonify({
                'status': 'logged_out',
                'message': 'Local session cleared; backend logout failed'
            }), 200

    @app.route('/api/auth/refresh', methods=['POST'])
    def refresh_session():
        """Refresh the access token from the refresh cookie"""
        client, _ = current_client()
        try:
            client.auth.refresh_token()
            return jsonify({'status': 'refreshed'})
        except Exception as e:
            return error_response(e)

    @app.route('/api/auth/me', methods=['GET'])
    def current_user():
        client, _ = current_client()
        user = client.state.current_user
        return jsonify({'user': user.to_dict() if user else None})

    # ===== INCIDENT ENDPOINTS =====

    @app.route('/api/incidents', methods=['GET'])
    def get_incidents():
        """Fetch incidents from the backend, optionally filtered by ?type="""
        client, _ = current_client()
        try:
            client.incidents.get_incidents()
        except Exception as e:
            return error_response(e)

        incidents = client.incidents.filter_incidents(request.args.get('type'))
        return jsonify([incident.to_dict() for incident in incidents])

    @app.route('/api/incidents', methods=['POST'])
    @limiter.limit("20 per hour")
    def create_incident():
        """Submit an incident report form"""
        client, _ = current_client()
        data = json_object_body()
        if data is None:
            return jsonify({'error': 'Request body is required'}), 400

        try:
            incident = client.incidents.submit_report(data)
            return jsonify(incident.to_dict()), 201
        except Exception as e:
            return error_response(e)

    @app.route('/api/feed', methods=['GET'])
    def get_feed():
        """Rendered feed view; ?type= switches the active filter"""
        _, renderer = current_client()
        if 'type' in request.args:
            renderer.set_filter(request.args.get('type'))
        return jsonify(renderer.view())

    @app.route('/api/firebase-config', methods=['GET'])
    def firebase_config():
        return jsonify(get_web_config(cfg))

    @app.route('/api/health', methods=['GET'])
    def health_check():
        """Health check endpoint"""
        return jsonify({'status': 'healthy', 'service': 'citizenwatch-client'})

    # ===== ERROR HANDLERS =====

    @app.errorhandler(413)
    def request_entity_too_large(error):
        return jsonify({
            'error': 'Request payload too large',
            'max_size': '10 MB',
            'message': 'Please attach fewer or smaller images.'
        }), 413

    @app.errorhandler(400)
    def bad_request(error):
        return jsonify({
            'error': 'Bad request',
            'message': str(error)
        }), 400

    return app


if __name__ == '__main__':
    logging.basicConfig(
        level=getattr(logging, config[os.getenv('FLASK_ENV', 'default')].LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
    )
    app = create_app()
    debug_mode = os.getenv('FLASK_DEBUG', 'False').lower() == 'true'
    app.run(debug=debug_mode, host='127.0.0.1', port=5001)
