"""
photoshare - Minimal photo-sharing backend

Accepts photo uploads with a display name and a public/private flag, stores
the original, a thumbnail and a metadata record in Google Cloud Storage,
and serves a password-gated listing with time-limited signed URLs.
"""

__version__ = "0.1.0"
__author__ = "photoshare"
__description__ = "Minimal photo-sharing backend with signed-URL listings"
