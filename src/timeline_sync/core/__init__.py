"""Core HTTP client for the project-timeline API."""

from .client import ProjectApiClient

__all__ = ["ProjectApiClient"]
