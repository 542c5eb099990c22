"""HTTP front end for photoshare."""

from .app import StoreProvider, create_app

__all__ = ["StoreProvider", "create_app"]
