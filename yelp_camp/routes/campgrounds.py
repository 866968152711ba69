"""Campground listing pages.

Anyone may browse; creating needs an account, and only a campground's author
may edit or delete it.
"""

from collections.abc import Callable
from functools import wraps
from typing import Any

from flask import Blueprint, flash, redirect, render_template, url_for

from yelp_camp.auth import current_state, current_user, login_required
from yelp_camp.logging_config import get_logger
from yelp_camp.models import Campground, db
from yelp_camp.schemas import CampgroundForm, validate_form

logger = get_logger(__name__)

bp = Blueprint("campgrounds", __name__, url_prefix="/campgrounds")

NOT_FOUND_MESSAGE = "Cannot find that campground!"
PERMISSION_MESSAGE = "You do not have permission to do that!"


def _missing_campground():
    flash(NOT_FOUND_MESSAGE, "error")
    return redirect(url_for("campgrounds.index"))


def campground_author_required(view: Callable[..., Any]) -> Callable[..., Any]:
    """Load the campground and pass it on only if the caller wrote it."""

    @wraps(view)
    def wrapped(campground_id: str, **kwargs: Any) -> Any:
        campground = db.session.get(Campground, campground_id)
        if campground is None:
            return _missing_campground()
        if campground.author_id != current_user().id:
            flash(PERMISSION_MESSAGE, "error")
            return redirect(url_for("campgrounds.show", campground_id=campground.id))
        return view(campground, **kwargs)

    return wrapped


@bp.get("")
def index():
    campgrounds = (
        db.session.query(Campground).order_by(Campground.created_at.desc()).all()
    )
    return render_template("campgrounds/index.html", campgrounds=campgrounds)


@bp.get("/new")
@login_required
def new():
    return render_template("campgrounds/new.html")


@bp.post("")
@login_required
def create():
    form = validate_form(
        CampgroundForm, current_state().body.get("campground"), "campground"
    )
    campground = Campground(**form.model_dump(), author_id=current_user().id)
    db.session.add(campground)
    db.session.commit()
    logger.info("Campground created", extra={"campground_id": campground.id})
    flash("Successfully made a new campground!", "success")
    return redirect(url_for("campgrounds.show", campground_id=campground.id))


@bp.get("/<campground_id>")
def show(campground_id: str):
    campground = db.session.get(Campground, campground_id)
    if campground is None:
        return _missing_campground()
    return render_template("campgrounds/show.html", campground=campground)


@bp.get("/<campground_id>/edit")
@login_required
@campground_author_required
def edit(campground: Campground):
    return render_template("campgrounds/edit.html", campground=campground)


@bp.put("/<campground_id>")
@login_required
@campground_author_required
def update(campground: Campground):
    form = validate_form(
        CampgroundForm, current_state().body.get("campground"), "campground"
    )
    for field, value in form.model_dump().items():
        setattr(campground, field, value)
    db.session.commit()
    flash("Successfully updated campground!", "success")
    return redirect(url_for("campgrounds.show", campground_id=campground.id))


@bp.delete("/<campground_id>")
@login_required
@campground_author_required
def delete(campground: Campground):
    campground_id = campground.id
    db.session.delete(campground)
    db.session.commit()
    logger.info("Campground deleted", extra={"campground_id": campground_id})
    flash("Successfully deleted campground", "success")
    return redirect(url_for("campgrounds.index"))
