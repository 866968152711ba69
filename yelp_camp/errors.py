"""Fallback and terminal error handlers.

Every failure ends in :func:`handle_error`, which normalizes it and renders
``error.html``. Requests no route matches, whatever the method, are turned
into a 404 ``NotFoundError`` first.
"""

from typing import Union

from flask import Flask, Response, g, render_template
from werkzeug.exceptions import InternalServerError, MethodNotAllowed, NotFound

from yelp_camp.exceptions import NotFoundError, normalize_error
from yelp_camp.logging_config import get_logger
from yelp_camp.models import db

logger = get_logger(__name__)

_VIEW_FAILED_FLAG = "error_view_failed"


def handle_unmatched(exc: Union[NotFound, MethodNotAllowed]):
    """Convert a routing miss into the typed 404 error."""
    return handle_error(NotFoundError())


def handle_error(exc: BaseException):
    """Render the error view for any exception.

    If rendering the error view itself fails, the failure is logged and
    re-raised; the framework then answers with its bare 500 response.
    """
    if g.get(_VIEW_FAILED_FLAG):
        return InternalServerError().get_response()

    db.session.rollback()
    result = normalize_error(exc)

    if result.status_code >= 500:
        logger.error(
            "Request failed",
            exc_info=(type(exc), exc, exc.__traceback__),
            extra={"status_code": result.status_code},
        )
    else:
        logger.info(
            "Request rejected: %s",
            result.message,
            extra={"status_code": result.status_code},
        )

    try:
        body = render_template("error.html", err=result)
    except Exception:
        setattr(g, _VIEW_FAILED_FLAG, True)
        logger.critical("Error view failed to render", exc_info=True)
        raise
    return Response(body, status=result.status_code, mimetype="text/html")


def register_fallback(app: Flask) -> None:
    """Route unmatched method+path combinations to the 404 error view.

    Registering again replaces the same handlers, so mounting twice is
    harmless.
    """
    app.register_error_handler(NotFound, handle_unmatched)
    app.register_error_handler(MethodNotAllowed, handle_unmatched)


def register_error_handlers(app: Flask) -> None:
    """Install the fallback and the terminal handler. Call after all routes."""
    register_fallback(app)
    app.register_error_handler(Exception, handle_error)
