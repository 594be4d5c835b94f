"""Download the images referenced by a single web page."""

__version__ = "0.3.0"
