"""Flower product pricing and social media preview cards."""

__version__ = "0.1.0"
