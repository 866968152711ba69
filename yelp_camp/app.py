"""Flask application factory.

This module builds configured Flask instances: settings, logging, the
database and session store, the request pipeline, the blueprints and,
last, the error handlers.
"""

import time
from typing import Any, Optional
from uuid import uuid4

from flask import Flask, Response, g, request
from werkzeug.middleware.proxy_fix import ProxyFix

from yelp_camp.config import PACKAGE_ROOT, Settings, get_settings, get_settings_override
from yelp_camp.context import RuntimeContext
from yelp_camp.errors import register_error_handlers
from yelp_camp.logging_config import configure_logging, get_logger, log_access
from yelp_camp.middleware import install_pipeline
from yelp_camp.routes import campgrounds_bp, health_bp, home_bp, reviews_bp, users_bp

logger = get_logger(__name__)


def create_app(config_override: Optional[dict[str, Any]] = None) -> Flask:
    """Create and configure the Flask application.

    Args:
        config_override: Optional settings values replacing those from the
            environment. Used primarily for testing.

    Returns:
        Configured Flask application with its tables created.

    Raises:
        ConfigurationError: If settings are invalid, including a production
            environment without SECRET or DB_URL.

    Example:
        >>> app = create_app()
        >>> test_app = create_app({"testing": True, "db_url": "sqlite://"})
    """
    if config_override:
        settings = get_settings_override(config_override)
    else:
        settings = get_settings()

    configure_logging(settings.log_level, json_output=not settings.debug)

    # Static files are served by the pipeline's static stage instead
    app = Flask(
        __name__,
        static_folder=None,
        template_folder=str(PACKAGE_ROOT / "templates"),
    )
    _configure_app(app, settings)

    runtime = RuntimeContext.create(app, settings)

    _configure_middleware(app, settings, runtime)
    _register_routes(app)
    register_error_handlers(app)

    runtime.init_db()
    logger.info(
        "Application created",
        extra={
            "app_name": settings.app_name,
            "version": settings.app_version,
            "app_env": settings.app_env,
            "skipped_stages": sorted(settings.skipped_stages),
        },
    )
    return app


def _configure_app(app: Flask, settings: Settings) -> None:
    app.config.update(
        SECRET_KEY=settings.secret,
        TESTING=settings.testing,
        DEBUG=settings.debug,
        SQLALCHEMY_DATABASE_URI=settings.db_url,
        SQLALCHEMY_TRACK_MODIFICATIONS=False,
        SESSION_COOKIE_NAME=settings.session_cookie_name,
        SESSION_COOKIE_HTTPONLY=True,
        SESSION_COOKIE_SECURE=settings.session_cookie_secure,
        PERMANENT_SESSION_LIFETIME=settings.session_lifetime,
    )
    app.config["SETTINGS"] = settings


def _configure_middleware(app: Flask, settings: Settings, runtime: RuntimeContext) -> None:
    """Configure WSGI middleware, request logging and the request pipeline.

    Args:
        app: Flask application instance.
        settings: Application settings.
        runtime: Shared collaborators holding the pipeline.
    """
    if settings.enable_proxy_fix:
        app.wsgi_app = ProxyFix(  # type: ignore[method-assign]
            app.wsgi_app,
            x_for=settings.proxy_fix_x_for,
            x_proto=settings.proxy_fix_x_proto,
            x_host=settings.proxy_fix_x_host,
        )
        logger.info("ProxyFix enabled")

    # Registered before the pipeline so timing covers every stage
    @app.before_request
    def start_request_timer() -> None:
        g.request_started = time.perf_counter()
        g.request_id = request.headers.get("X-Request-ID", str(uuid4()))

    install_pipeline(app, runtime.pipeline)

    @app.after_request
    def log_request(response: Response) -> Response:
        """Tag the response with its request id and write the access line."""
        request_id = g.get("request_id")
        if request_id:
            response.headers["X-Request-ID"] = request_id
        started = g.get("request_started")
        duration_ms = (time.perf_counter() - started) * 1000 if started else 0.0
        log_access(
            request.method,
            request.path,
            response.status_code,
            response.content_length,
            duration_ms,
        )
        return response


def _register_routes(app: Flask) -> None:
    app.register_blueprint(home_bp)
    app.register_blueprint(health_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(campgrounds_bp)
    app.register_blueprint(reviews_bp)
