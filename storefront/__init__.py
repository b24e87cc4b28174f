"""Alamer storefront: cart engine, checkout and catalog clients."""

__version__ = "1.0.0"
