"""Storefront backend: cart line resolution and shipping address management"""

__version__ = "1.0.0"
