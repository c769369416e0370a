import atexit
import logging
import os

from flask import Flask, jsonify

from .config import Config

log = logging.getLogger(__name__)


def create_app(config_class=Config, client_factory=None):
    """Build the console app.

    *client_factory* returns the Socket.IO client the transport drives; tests
    pass a fake one.
    """
    from .services.console import SessionManager
    from .services.subscriptions import SubscriptionRegistry
    from .services.transport import Transport

    app = Flask(__name__)
    cfg = config_class()
    app.secret_key = cfg.SECRET_KEY
    app.config['SESSION_COOKIE_HTTPONLY'] = cfg.SESSION_COOKIE_HTTPONLY
    app.config['SESSION_COOKIE_SAMESITE'] = getattr(cfg, 'SESSION_COOKIE_SAMESITE', 'Lax')
    app.config['SESSION_COOKIE_SECURE']   = getattr(cfg, 'SESSION_COOKIE_SECURE', False)
    app.config['PERMANENT_SESSION_LIFETIME'] = cfg.PERMANENT_SESSION_LIFETIME

    app.console_config = cfg
    # The token is read when the connection opens, not on reconnect.
    app.console_transport = Transport(
        cfg.WS_URL,
        token_provider=lambda: cfg.ACCESS_TOKEN,
        client_factory=client_factory,
    )
    app.console_registry = SubscriptionRegistry(app.console_transport)
    app.console_sessions = SessionManager(
        app.console_registry,
        maxlen=cfg.MAX_CONSOLE_LINES,
        daemon_prefix=cfg.DAEMON_PREFIX,
        autoscroll_threshold=cfg.AUTOSCROLL_THRESHOLD,
    )

    from .blueprints.auth    import bp as auth_bp
    from .blueprints.console import bp as console_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(console_bp)

    @app.after_request
    def _security_headers(response):
        response.headers.setdefault('X-Content-Type-Options', 'nosniff')
        response.headers.setdefault('X-Frame-Options', 'DENY')
        response.headers.setdefault('Referrer-Policy', 'same-origin')
        return response

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({'error': 'Not found', 'status': 404}), 404

    @app.errorhandler(500)
    def server_error(e):
        return jsonify({'error': 'Internal server error', 'status': 500}), 500

    # Skip in TESTING mode (CI/pytest) so no socket is opened.
    if not os.environ.get('TESTING') and cfg.WS_AUTOCONNECT:
        app.console_transport.connect()

    atexit.register(shutdown, app)
    return app


def shutdown(app):
    """Release every console session and close the transport."""
    app.console_sessions.close_all()
    app.console_transport.disconnect()
    log.info('Console transport closed')
