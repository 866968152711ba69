"""Reviews nested under a campground."""

from flask import Blueprint, flash, redirect, url_for

from yelp_camp.auth import current_state, current_user, login_required
from yelp_camp.logging_config import get_logger
from yelp_camp.models import Campground, Review, db
from yelp_camp.routes.campgrounds import NOT_FOUND_MESSAGE, PERMISSION_MESSAGE
from yelp_camp.schemas import ReviewForm, validate_form

logger = get_logger(__name__)

bp = Blueprint("reviews", __name__, url_prefix="/campgrounds/<campground_id>/reviews")


@bp.post("")
@login_required
def create(campground_id: str):
    campground = db.session.get(Campground, campground_id)
    if campground is None:
        flash(NOT_FOUND_MESSAGE, "error")
        return redirect(url_for("campgrounds.index"))

    form = validate_form(ReviewForm, current_state().body.get("review"), "review")
    review = Review(
        body=form.body,
        rating=form.rating,
        author_id=current_user().id,
        campground_id=campground.id,
    )
    db.session.add(review)
    db.session.commit()
    flash("Created new review!", "success")
    return redirect(url_for("campgrounds.show", campground_id=campground.id))


@bp.delete("/<review_id>")
@login_required
def delete(campground_id: str, review_id: str):
    review = db.session.get(Review, review_id)
    if review is None or review.campground_id != campground_id:
        flash("Cannot find that review!", "error")
        return redirect(url_for("campgrounds.show", campground_id=campground_id))
    if review.author_id != current_user().id:
        flash(PERMISSION_MESSAGE, "error")
        return redirect(url_for("campgrounds.show", campground_id=campground_id))

    db.session.delete(review)
    db.session.commit()
    logger.info("Review deleted", extra={"review_id": review_id})
    flash("Successfully deleted review", "success")
    return redirect(url_for("campgrounds.show", campground_id=campground_id))
