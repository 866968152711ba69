"""Account registration, login state and access decorators.

The session stores only the user's id under ``user_id``; the pipeline's
``auth`` stage turns it back into a :class:`~yelp_camp.models.User` once per
request.
"""

from __future__ import annotations

from collections.abc import Callable
from functools import wraps
from typing import Any, Optional

from flask import flash, g, redirect, request, session, url_for
from flask.sessions import SessionMixin
from sqlalchemy import func

from yelp_camp.exceptions import AppError
from yelp_camp.logging_config import get_logger
from yelp_camp.models import User, db
from yelp_camp.pipeline import RequestState
from yelp_camp.sessions import ServerSideSession

logger = get_logger(__name__)

SESSION_USER_KEY = "user_id"
RETURN_TO_KEY = "return_to"

SIGN_IN_REQUIRED_MESSAGE = "You must be signed in first!"
DUPLICATE_USER_MESSAGE = "A user with the given username is already registered"
DUPLICATE_EMAIL_MESSAGE = "A user with the given email is already registered"


def current_state() -> RequestState:
    """Return this request's pipeline state, creating an empty one if needed."""
    state = g.get("state")
    if state is None:
        state = RequestState()
        g.state = state
    return state


def current_user() -> Optional[User]:
    return current_state().current_user


def _find_by_username(username: str) -> Optional[User]:
    """Look up an account by username, ignoring case."""
    return (
        db.session.query(User)
        .filter(func.lower(User.username) == username.lower())
        .first()
    )


def register_user(username: str, email: str, password: str) -> User:
    """Create an account.

    Raises:
        AppError: (400) when the username or email is already taken.
    """
    if _find_by_username(username) is not None:
        raise AppError(DUPLICATE_USER_MESSAGE, 400)
    if db.session.query(User).filter(func.lower(User.email) == email.lower()).first():
        raise AppError(DUPLICATE_EMAIL_MESSAGE, 400)

    user = User(username=username, email=email)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    logger.info("User registered", extra={"user_id": user.id})
    return user


def authenticate(username: str, password: str) -> Optional[User]:
    """Return the user whose credentials match, or None.

    Usernames match without regard to case, as they do for uniqueness.
    """
    user = _find_by_username(username)
    if user is None or not user.check_password(password):
        return None
    return user


def _rotate(current: SessionMixin) -> None:
    if isinstance(current, ServerSideSession):
        current.rotate()


def login_user(user: User) -> None:
    """Record ``user`` as authenticated for this and later requests."""
    current = session._get_current_object()  # pylint: disable=protected-access
    _rotate(current)
    current[SESSION_USER_KEY] = user.id
    current_state().current_user = user
    logger.info("User logged in", extra={"user_id": user.id})


def logout_user() -> None:
    current = session._get_current_object()  # pylint: disable=protected-access
    user_id = current.pop(SESSION_USER_KEY, None)
    _rotate(current)
    current_state().current_user = None
    if user_id:
        logger.info("User logged out", extra={"user_id": user_id})


def load_current_user(current: SessionMixin) -> Optional[User]:
    """Resolve the user id stored in ``current`` to a User.

    A stale id (the account no longer exists) is dropped from the session.
    """
    user_id = current.get(SESSION_USER_KEY)
    if not user_id:
        return None
    user = db.session.get(User, user_id)
    if user is None:
        current.pop(SESSION_USER_KEY, None)
    return user


def _is_safe_return_path(target: Any) -> bool:
    return isinstance(target, str) and target.startswith("/") and not target.startswith("//")


def pop_return_to(default: str) -> str:
    """Take the URL remembered by :func:`login_required`, if it is local."""
    target = session.pop(RETURN_TO_KEY, None)
    return target if _is_safe_return_path(target) else default


def login_required(view: Callable[..., Any]) -> Callable[..., Any]:
    """Send anonymous callers to the login page.

    GET requests remember their URL so login can return there.
    """

    @wraps(view)
    def wrapped(*args: Any, **kwargs: Any) -> Any:
        if current_user() is None:
            if request.method == "GET":
                session[RETURN_TO_KEY] = request.full_path.rstrip("?")
            flash(SIGN_IN_REQUIRED_MESSAGE, "error")
            return redirect(url_for("users.login_form"))
        return view(*args, **kwargs)

    return wrapped
