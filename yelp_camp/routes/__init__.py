"""Route blueprints.

This package contains the Flask blueprints, one module per area.
"""

from yelp_camp.routes.campgrounds import bp as campgrounds_bp
from yelp_camp.routes.health import bp as health_bp
from yelp_camp.routes.home import bp as home_bp
from yelp_camp.routes.reviews import bp as reviews_bp
from yelp_camp.routes.users import bp as users_bp

__all__ = ["campgrounds_bp", "health_bp", "home_bp", "reviews_bp", "users_bp"]
