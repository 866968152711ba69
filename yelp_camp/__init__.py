"""Yelp Camp: campground listings and reviews."""

__version__ = "0.1.0"
