"""invoke entry point; the tasks live in photoshare.cli.tasks."""

from photoshare.cli.tasks import ns  # noqa: F401
