"""Process-lifetime collaborators shared by every request.

One :class:`RuntimeContext` is built by the application factory and stored on
``app.extensions``. It owns the database handle, the session store and the
request pipeline, and knows how to release them at shutdown.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from flask import Flask, current_app
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from yelp_camp.config import Settings
from yelp_camp.logging_config import get_logger
from yelp_camp.middleware import build_pipeline
from yelp_camp.models import db
from yelp_camp.pipeline import RequestPipeline
from yelp_camp.sessions import DatabaseSessionInterface

logger = get_logger(__name__)

EXTENSION_KEY = "yelp_camp"


@dataclass
class RuntimeContext:
    """Shared state for one application instance."""

    app: Flask
    settings: Settings
    db: SQLAlchemy
    session_interface: DatabaseSessionInterface
    pipeline: RequestPipeline
    closed: bool = False

    @classmethod
    def create(cls, app: Flask, settings: Settings) -> "RuntimeContext":
        """Wire the database, session store and pipeline into ``app``."""
        db.init_app(app)

        session_interface = DatabaseSessionInterface(
            lifetime=settings.session_lifetime,
            touch_after=settings.session_touch_after,
            rolling=settings.session_rolling,
            save_uninitialized=settings.session_save_uninitialized,
        )
        app.session_interface = session_interface

        context = cls(
            app=app,
            settings=settings,
            db=db,
            session_interface=session_interface,
            pipeline=build_pipeline(settings, session_interface),
        )
        app.extensions[EXTENSION_KEY] = context
        return context

    def init_db(self) -> None:
        """Create any missing tables.

        Raises:
            SQLAlchemyError: If the database cannot be reached.
        """
        with self.app.app_context():
            try:
                self.db.create_all()
            except SQLAlchemyError:
                logger.error("Database connection error", exc_info=True)
                raise
        logger.info("Database connected")

    def check_db(self) -> bool:
        """True when a trivial query succeeds. Needs an application context."""
        try:
            self.db.session.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            logger.warning("Database check failed", exc_info=True)
            return False

    def close(self) -> None:
        """Dispose pooled connections. Safe to call more than once."""
        if self.closed:
            return
        with self.app.app_context():
            self.db.engine.dispose()
        self.closed = True
        logger.info("Database connections closed")


def get_runtime(app: Optional[Flask] = None) -> RuntimeContext:
    """Return the RuntimeContext of ``app`` (default: the current app)."""
    target = app if app is not None else current_app
    return target.extensions[EXTENSION_KEY]
