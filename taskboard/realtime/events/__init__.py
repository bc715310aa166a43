"""Board events and their publish helpers.

``domain`` defines the closed set of events. Publish modules (``boards``)
build events from persisted records and hand them to the hub; they must not
define Socket.IO servers or connection handlers.
"""

from .domain import DomainEvent
from .domain import EventKind

__all__ = ["DomainEvent", "EventKind"]
