"""Models package: re-export all ORM classes for metadata registration."""
from db_gateway.models.snapshot import Snapshot  # noqa: F401
from db_gateway.models.url_entry import UrlEntry  # noqa: F401
