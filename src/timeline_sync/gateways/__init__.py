"""Backing stores behind the ``ProjectGateway`` capability.

- ``remote`` -- ``HttpProjectGateway``: the production REST API.
- ``local``  -- ``SqliteProjectGateway``: the development SQLite database.
"""

from .base import ProjectGateway, create_gateway
from .local import SqliteProjectGateway
from .remote import HttpProjectGateway

__all__ = [
    "HttpProjectGateway",
    "ProjectGateway",
    "SqliteProjectGateway",
    "create_gateway",
]
