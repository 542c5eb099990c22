"""CLI tasks for photoshare."""
