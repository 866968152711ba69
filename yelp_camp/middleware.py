"""Request pipeline stages and their installation on a Flask app.

Stage order is fixed (see :data:`yelp_camp.config.PIPELINE_STAGES`):

1. ``body``            parse URL-encoded / JSON bodies and the query string
2. ``method_override`` honour ``_method`` on POST and re-route the request
3. ``static``          serve files from the public directory
4. ``sanitize``        drop operator-like keys from body and query
5. ``session``         resume the stored session named by the cookie
6. ``auth``            resolve the current user
7. ``flash``           read one-shot messages for this response
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

from flask import (
    Flask,
    Request,
    current_app,
    g,
    get_flashed_messages,
    request as flask_request,
    send_from_directory,
    session,
)
from werkzeug.exceptions import HTTPException
from werkzeug.security import safe_join

from yelp_camp.auth import current_state, load_current_user
from yelp_camp.body import parse_nested, parse_request_body
from yelp_camp.config import PIPELINE_STAGES, Settings
from yelp_camp.logging_config import get_logger
from yelp_camp.pipeline import RequestPipeline, RequestState, Stage
from yelp_camp.sanitize import sanitize
from yelp_camp.sessions import DatabaseSessionInterface, ServerSideSession

logger = get_logger(__name__)

METHOD_OVERRIDE_FIELD = "_method"
OVERRIDABLE_METHODS = frozenset({"PUT", "PATCH", "DELETE"})


def parse_body(request: Request, state: RequestState) -> None:
    state.body = parse_request_body(request)
    state.query = parse_nested(request.args.items(multi=True))


def override_method(request: Request, state: RequestState) -> None:
    """Let a POST form act as PUT, PATCH or DELETE.

    The override is read from the query string first, then from the parsed
    body. Routing already ran for POST, so the request is matched again
    under the new method.
    """
    if request.method != "POST":
        return None
    body_override = state.body.pop(METHOD_OVERRIDE_FIELD, None)
    override = request.args.get(METHOD_OVERRIDE_FIELD) or body_override
    if not isinstance(override, str):
        return None
    method = override.strip().upper()
    if method not in OVERRIDABLE_METHODS:
        logger.debug("Ignoring method override to %s", method)
        return None

    request.environ["REQUEST_METHOD"] = method
    request.method = method
    adapter = current_app.create_url_adapter(request)
    try:
        request.url_rule, request.view_args = adapter.match(  # type: ignore[union-attr]
            method=method, return_rule=True
        )
        request.routing_exception = None
    except HTTPException as exc:
        request.url_rule = None
        request.view_args = None
        request.routing_exception = exc
    return None


def make_static_stage(public_path: Path) -> Stage:
    """Build the stage that serves files under ``public_path`` directly."""
    root = str(public_path)

    def serve_static(request: Request, state: RequestState) -> Optional[Any]:
        if request.method not in ("GET", "HEAD"):
            return None
        relative = request.path.lstrip("/")
        if not relative:
            return None
        candidate = safe_join(root, relative)
        if candidate is None or not os.path.isfile(candidate):
            return None
        return send_from_directory(root, relative)

    return serve_static


def sanitize_input(request: Request, state: RequestState) -> None:
    state.body, removed_body = sanitize(state.body)
    state.query, removed_query = sanitize(state.query)
    removed = removed_body + removed_query
    if removed:
        logger.warning(
            "Removed prohibited input keys",
            extra={"path": request.path, "keys": removed},
        )


def make_session_stage(interface: DatabaseSessionInterface) -> Stage:
    def resume_session(request: Request, state: RequestState) -> None:
        current = session._get_current_object()  # pylint: disable=protected-access
        if isinstance(current, ServerSideSession):
            interface.resume(current)

    return resume_session


def resolve_user(request: Request, state: RequestState) -> None:
    state.current_user = load_current_user(session)


def expose_flashes(request: Request, state: RequestState) -> None:
    for category, message in get_flashed_messages(with_categories=True):
        state.flashes.setdefault(category, []).append(message)


def build_pipeline(
    settings: Settings, session_interface: DatabaseSessionInterface
) -> RequestPipeline:
    """Assemble the default stages in their fixed order."""
    stages: dict[str, Stage] = {
        "body": parse_body,
        "method_override": override_method,
        "static": make_static_stage(settings.public_path),
        "sanitize": sanitize_input,
        "session": make_session_stage(session_interface),
        "auth": resolve_user,
        "flash": expose_flashes,
    }
    return RequestPipeline(
        ((name, stages[name]) for name in PIPELINE_STAGES),
        skip=settings.skipped_stages,
    )


def install_pipeline(app: Flask, pipeline: RequestPipeline) -> None:
    """Run ``pipeline`` before every view and expose its state to templates."""

    @app.before_request
    def run_request_pipeline() -> Optional[Any]:
        g.state = RequestState()
        return pipeline.run(
            flask_request._get_current_object(), g.state  # pylint: disable=protected-access
        )

    @app.context_processor
    def inject_request_state() -> dict[str, Any]:
        state = current_state()
        return {
            "current_user": state.current_user,
            "success": state.flashes.get("success", []),
            "error": state.flashes.get("error", []),
        }
