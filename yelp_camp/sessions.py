"""Server-side sessions persisted through SQLAlchemy.

The cookie only carries a signed, opaque session id. Opening a session just
verifies that signature; the stored payload is loaded later by
:meth:`DatabaseSessionInterface.resume`, which the request pipeline calls in
its ``session`` stage. A session that was never resumed behaves as a fresh,
anonymous one.

Write policy on save:

* modified sessions are written immediately;
* unmodified sessions are rewritten ("touched") only once ``touch_after``
  seconds have passed since the last write;
* sessions that hold no data are not stored unless ``save_uninitialized``.

The expiry is fixed at creation unless ``rolling`` is enabled, in which case
every write pushes it out by the full lifetime again.
"""

from __future__ import annotations

import secrets
from datetime import datetime, timedelta
from typing import Any, Optional

from flask import Flask, Request, Response
from flask.sessions import SessionInterface, SessionMixin
from itsdangerous import BadSignature, Signer
from werkzeug.datastructures import CallbackDict

from yelp_camp.logging_config import get_logger
from yelp_camp.models import SessionRecord, db, utcnow

logger = get_logger(__name__)

_SIGNER_SALT = "yelp-camp-session"


class ServerSideSession(CallbackDict, SessionMixin):  # pylint: disable=too-many-ancestors
    """Session dict that remembers which stored record it belongs to."""

    def __init__(self, cookie_sid: Optional[str] = None) -> None:
        def on_update(self: "ServerSideSession") -> None:
            self.modified = True

        super().__init__(None, on_update)
        self.cookie_sid = cookie_sid
        self.sid: Optional[str] = None
        self.new = True
        self.modified = False
        self.resumed = False
        self.rotated_from: Optional[str] = None
        self.expires_at: Optional[datetime] = None
        self.touched_at: Optional[datetime] = None

    def load(self, record: SessionRecord) -> None:
        """Adopt a stored record without marking the session modified."""
        self.update(record.data or {})
        self.sid = record.sid
        self.new = False
        self.expires_at = record.expires_at
        self.touched_at = record.touched_at
        self.modified = False

    def rotate(self) -> None:
        """Move the payload to a fresh id on the next save.

        Called around login and logout so an id observed before
        authentication cannot be reused afterwards.
        """
        if not self.new and self.sid is not None:
            self.rotated_from = self.sid
        self.sid = None
        self.new = True
        self.expires_at = None
        self.modified = True


class DatabaseSessionInterface(SessionInterface):
    """Flask session interface storing payloads in the ``sessions`` table."""

    session_class = ServerSideSession

    def __init__(
        self,
        lifetime: timedelta,
        touch_after: int,
        rolling: bool = False,
        save_uninitialized: bool = False,
    ) -> None:
        self.lifetime = lifetime
        self.touch_after = timedelta(seconds=touch_after)
        self.rolling = rolling
        self.save_uninitialized = save_uninitialized

    def _signer(self, app: Flask) -> Signer:
        return Signer(app.secret_key, salt=_SIGNER_SALT, key_derivation="hmac")

    @staticmethod
    def generate_sid() -> str:
        return secrets.token_urlsafe(32)

    def open_session(self, app: Flask, request: Request) -> ServerSideSession:
        cookie = request.cookies.get(self.get_cookie_name(app))
        if not cookie:
            return self.session_class()
        try:
            sid = self._signer(app).unsign(cookie).decode("utf-8")
        except BadSignature:
            logger.warning("Rejected session cookie with a bad signature")
            return self.session_class()
        return self.session_class(cookie_sid=sid)

    def resume(self, session: ServerSideSession, now: Optional[datetime] = None) -> bool:
        """Load the stored payload for the id carried by the cookie.

        Args:
            session: Session returned by :meth:`open_session`.
            now: Clock override for tests.

        Returns:
            True when an unexpired record was found and loaded.
        """
        if session.resumed or not session.cookie_sid:
            return False
        session.resumed = True

        record = db.session.get(SessionRecord, session.cookie_sid)
        if record is None:
            return False
        if record.is_expired(now):
            logger.debug("Discarding expired session %s", record.sid[:8])
            db.session.delete(record)
            db.session.commit()
            return False

        session.load(record)
        return True

    def save_session(
        self, app: Flask, session: SessionMixin, response: Response
    ) -> None:
        if not isinstance(session, ServerSideSession):
            return
        now = utcnow()

        if session.rotated_from is not None:
            stale = db.session.get(SessionRecord, session.rotated_from)
            if stale is not None:
                db.session.delete(stale)
            session.rotated_from = None

        if session.new:
            issue_cookie = self._insert(session, now)
        elif not session:
            issue_cookie = self._destroy(app, session, response)
        elif session.modified:
            issue_cookie = self._update(session, now)
        else:
            issue_cookie = self._touch(session, now)

        db.session.commit()

        if issue_cookie:
            self._set_cookie(app, session, response, now)

    def _insert(self, session: ServerSideSession, now: datetime) -> bool:
        if not session and not self.save_uninitialized:
            return False
        session.sid = self.generate_sid()
        session.expires_at = now + self.lifetime
        session.touched_at = now
        db.session.add(
            SessionRecord(
                sid=session.sid,
                data=dict(session),
                created_at=now,
                expires_at=session.expires_at,
                touched_at=now,
            )
        )
        session.new = False
        return True

    def _update(self, session: ServerSideSession, now: datetime) -> bool:
        record = db.session.get(SessionRecord, session.sid)
        if record is None:
            # Record vanished underneath us (purged or expired); start over
            session.new = True
            return self._insert(session, now)
        record.data = dict(session)
        record.touched_at = now
        if self.rolling:
            record.expires_at = now + self.lifetime
        session.expires_at = record.expires_at
        session.touched_at = now
        return True

    def _touch(self, session: ServerSideSession, now: datetime) -> bool:
        if session.touched_at is not None and now - session.touched_at < self.touch_after:
            return False
        record = db.session.get(SessionRecord, session.sid)
        if record is None:
            return False
        record.touched_at = now
        if self.rolling:
            record.expires_at = now + self.lifetime
        session.expires_at = record.expires_at
        session.touched_at = now
        return self.rolling

    def _destroy(self, app: Flask, session: ServerSideSession, response: Response) -> bool:
        if self.save_uninitialized:
            return self._update(session, utcnow())
        record = db.session.get(SessionRecord, session.sid)
        if record is not None:
            db.session.delete(record)
        response.delete_cookie(
            self.get_cookie_name(app),
            domain=self.get_cookie_domain(app),
            path=self.get_cookie_path(app),
        )
        return False

    def _set_cookie(
        self,
        app: Flask,
        session: ServerSideSession,
        response: Response,
        now: datetime,
    ) -> None:
        max_age = max(int((session.expires_at - now).total_seconds()), 0)
        response.set_cookie(
            self.get_cookie_name(app),
            self._signer(app).sign(session.sid).decode("utf-8"),
            max_age=max_age,
            expires=session.expires_at,
            httponly=self.get_cookie_httponly(app),
            domain=self.get_cookie_domain(app),
            path=self.get_cookie_path(app),
            secure=self.get_cookie_secure(app),
            samesite=self.get_cookie_samesite(app),
        )
        response.vary.add("Cookie")


def purge_expired_sessions(now: Optional[datetime] = None) -> int:
    """Delete every stored session whose expiry has passed.

    Must run inside an application context.

    Returns:
        Number of records removed.
    """
    cutoff = now or utcnow()
    removed = (
        db.session.query(SessionRecord)
        .filter(SessionRecord.expires_at <= cutoff)
        .delete(synchronize_session=False)
    )
    db.session.commit()
    logger.info("Purged expired sessions", extra={"removed": removed})
    return removed


def session_payload(sid: str) -> Optional[dict[str, Any]]:
    """Return the stored payload for ``sid``, if any."""
    record = db.session.get(SessionRecord, sid)
    return None if record is None else dict(record.data or {})
