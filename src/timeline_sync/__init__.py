"""Back up, export, reconcile and replace project-timeline data."""

__version__ = "1.0.0"
