import atexit
import logging
import os
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from flask import Flask

logger = logging.getLogger(__name__)


def create_app(
    database_url: Optional[str] = None,
    notifications=None,
    config_overrides: Optional[Dict[str, Any]] = None,
    configure_logging: bool = True,
) -> Flask:
    """Application factory.

    Builds the process-wide Database and NotificationDispatcher once and
    injects them into the registry and the ledger. Tests pass their own
    database URL and dispatcher.
    """
    # Only load .env when the environment does not already define the store
    if not os.getenv("DATABASE_URL"):
        load_dotenv()

    from salon_booking.controllers import (
        appointment_bp,
        availability_bp,
        health_bp,
        schedule_bp,
    )
    from salon_booking.core import config
    from salon_booking.core.api_utils import register_error_handlers
    from salon_booking.core.limiter_config import limiter
    from salon_booking.core.logging_config import setup_logging
    from salon_booking.db.session import Database
    from salon_booking.services import EXTENSION_KEY, build_services
    from salon_booking.services.notification_service import build_dispatcher

    env = config.get_environment()
    is_production = config.is_production()

    app = Flask(__name__)
    app.config["TESTING"] = config.is_test_mode()
    app.config["ADMIN_AUTH_DISABLED"] = config.get_admin_auth_disabled()
    app.config["RATELIMIT_ENABLED"] = config.get_rate_limit_enabled()
    app.config["RATELIMIT_STORAGE_URI"] = config.get_limiter_storage_uri()
    app.config.update(config_overrides or {})

    if configure_logging:
        setup_logging(
            app=app,
            log_level=config.get_log_level(),
            enable_sql_echo=not is_production,
            log_to_file=config.get_log_to_file(),
            use_json_format=is_production,
        )
    config.log_startup_config()

    sentry_dsn = config.get_sentry_dsn()
    if sentry_dsn:
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration
        from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

        sentry_sdk.init(
            dsn=sentry_dsn,
            environment=env,
            release=os.getenv("GIT_SHA", "unknown"),
            integrations=[FlaskIntegration(), SqlalchemyIntegration()],
            traces_sample_rate=0.1,
            send_default_pii=False,  # client names and contacts stay out of Sentry
        )
        logger.info("Sentry initialized", extra={"context": {"environment": env}})
    else:
        logger.info(
            "Sentry not initialized (SENTRY_DSN not set)",
            extra={"context": {"environment": env}},
        )

    # Per-app registry so several apps (tests, workers) can coexist in one process
    from prometheus_client import CollectorRegistry
    from prometheus_flask_exporter import PrometheusMetrics

    metrics = PrometheusMetrics(app, registry=CollectorRegistry(auto_describe=True))
    metrics.info(
        "salon_booking_info",
        "Application information",
        version=os.getenv("GIT_SHA", "unknown"),
        environment=env,
    )

    limiter.init_app(app)
    if not app.config["RATELIMIT_ENABLED"]:
        logger.info("Rate limiting disabled", extra={"context": {"environment": env}})

    database = Database(database_url or config.get_database_url())
    if app.config.get("AUTO_CREATE_TABLES", True):
        database.create_tables()

    if notifications is None:
        notifications = build_dispatcher(
            config.get_smtp_settings(), config.get_salon_name()
        )

    services = build_services(database, notifications)
    app.extensions[EXTENSION_KEY] = services
    atexit.register(database.dispose)

    register_error_handlers(app)
    app.register_blueprint(health_bp)
    app.register_blueprint(appointment_bp)
    app.register_blueprint(schedule_bp)
    app.register_blueprint(availability_bp)

    logger.info(
        "Application created",
        extra={
            "context": {
                "environment": env,
                "database": database.engine.dialect.name,
                "blueprints": sorted(app.blueprints),
            }
        },
    )
    return app
