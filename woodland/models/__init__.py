"""ORM models; importing this package registers every table on Base.metadata."""

from woodland.models.article import Article  # noqa: F401
from woodland.models.location import Location  # noqa: F401
from woodland.models.news import News  # noqa: F401
from woodland.models.record import Record  # noqa: F401
from woodland.models.user import User, UserRole  # noqa: F401

__all__ = ["Article", "Location", "News", "Record", "User", "UserRole"]
