"""Demo data for local development."""

import random
from typing import Optional

from yelp_camp.models import Campground, User, db

CITIES: tuple[tuple[str, str], ...] = (
    ("Flagstaff", "Arizona"),
    ("Bend", "Oregon"),
    ("Moab", "Utah"),
    ("Asheville", "North Carolina"),
    ("Bozeman", "Montana"),
    ("Boulder", "Colorado"),
    ("Bar Harbor", "Maine"),
    ("Jackson", "Wyoming"),
    ("Sedona", "Arizona"),
    ("Lake Placid", "New York"),
    ("Truckee", "California"),
    ("Ely", "Minnesota"),
)

DESCRIPTORS: tuple[str, ...] = (
    "Forest",
    "Ancient",
    "Petrified",
    "Roaring",
    "Cascade",
    "Tumbling",
    "Silent",
    "Redwood",
    "Bullfrog",
    "Maple",
    "Misty",
    "Elk",
    "Grizzly",
    "Ocean",
    "Sea",
    "Sky",
    "Dusty",
    "Diamond",
)

PLACES: tuple[str, ...] = (
    "Flats",
    "Village",
    "Canyon",
    "Pond",
    "Mule Camp",
    "Hollow",
    "Creek",
    "Cove",
    "Bay",
    "River",
    "Springs",
    "Ridge",
    "Backcountry",
)

DESCRIPTION = (
    "Quiet sites under tall trees with fire rings, picnic tables and a short "
    "walk to fresh water. Trailheads leave straight from the loop road."
)


def ensure_seed_user(username: str, email: str, password: str) -> User:
    """Return the seed account, creating it on first use."""
    user = db.session.query(User).filter_by(username=username).first()
    if user is None:
        user = User(username=username, email=email)
        user.set_password(password)
        db.session.add(user)
        db.session.flush()
    return user


def seed_campgrounds(
    author: User, count: int = 50, rng: Optional[random.Random] = None
) -> list[Campground]:
    """Replace every campground with ``count`` generated ones.

    Must run inside an application context.

    Args:
        author: Account that owns the generated campgrounds.
        count: Number of campgrounds to create.
        rng: Random source, seeded for reproducible output.

    Returns:
        The new campgrounds.
    """
    rng = rng or random.Random()

    for campground in db.session.query(Campground).all():
        db.session.delete(campground)

    campgrounds = []
    for _ in range(count):
        city, state = rng.choice(CITIES)
        campground = Campground(
            title=f"{rng.choice(DESCRIPTORS)} {rng.choice(PLACES)}",
            location=f"{city}, {state}",
            price=float(rng.randint(10, 40)),
            description=DESCRIPTION,
            image=None,
            author_id=author.id,
        )
        db.session.add(campground)
        campgrounds.append(campground)

    db.session.commit()
    return campgrounds
