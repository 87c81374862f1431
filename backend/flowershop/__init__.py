"""Flower shop storefront backend: cart, checkout and order details API."""

__version__ = "1.0.0"
