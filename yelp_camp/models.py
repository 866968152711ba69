from datetime import datetime, timezone
import uuid

from flask_sqlalchemy import SQLAlchemy
from werkzeug.security import check_password_hash, generate_password_hash

db = SQLAlchemy()


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _new_id() -> str:
    return str(uuid.uuid4())


class User(db.Model):
    """Registered account"""

    __tablename__ = "users"

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    username = db.Column(db.String(64), nullable=False, unique=True)
    email = db.Column(db.String(255), nullable=False, unique=True)
    password_hash = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)

    campgrounds = db.relationship("Campground", backref="author", lazy=True)
    reviews = db.relationship("Review", backref="author", lazy=True)

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)


class Campground(db.Model):
    """A campground listing"""

    __tablename__ = "campgrounds"

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    title = db.Column(db.String(200), nullable=False)
    price = db.Column(db.Float, nullable=False, default=0.0)
    description = db.Column(db.Text, nullable=False)
    location = db.Column(db.String(200), nullable=False)
    image = db.Column(db.String(2048), nullable=True)
    author_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)

    # Deleting a campground removes its reviews with it
    reviews = db.relationship(
        "Review",
        backref="campground",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="Review.created_at",
    )

    __table_args__ = (db.Index("idx_campground_created_at", "created_at"),)

    @property
    def average_rating(self):
        if not self.reviews:
            return None
        return sum(r.rating for r in self.reviews) / len(self.reviews)


class Review(db.Model):
    """A user's review of a campground"""

    __tablename__ = "reviews"

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    body = db.Column(db.Text, nullable=False)
    rating = db.Column(db.Integer, nullable=False)
    author_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)
    campground_id = db.Column(
        db.String(36), db.ForeignKey("campgrounds.id"), nullable=False
    )
    created_at = db.Column(db.DateTime, default=utcnow)

    __table_args__ = (
        db.CheckConstraint("rating >= 1 AND rating <= 5", name="ck_review_rating"),
        db.Index("idx_review_campground_id", "campground_id"),
    )


class SessionRecord(db.Model):
    """Server-side session payload keyed by the id carried in the cookie"""

    __tablename__ = "sessions"

    sid = db.Column(db.String(64), primary_key=True)
    data = db.Column(db.JSON, nullable=False, default=dict)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    expires_at = db.Column(db.DateTime, nullable=False)
    touched_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    __table_args__ = (db.Index("idx_session_expires_at", "expires_at"),)

    def is_expired(self, now=None) -> bool:
        return self.expires_at <= (now or utcnow())
