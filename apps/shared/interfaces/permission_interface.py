"""
Permission Interface for Service Decoupling

Services that need permission validation (job coordinator, scan engine)
depend on this interface rather than on the concrete event permission service.
"""

from abc import ABC
from abc import abstractmethod
from typing import Any


class IPermissionValidator(ABC):
    """
    Minimal interface for permission validation operations.
    """

    @abstractmethod
    def validate_organizer_access(self, event: Any, user: Any, action: str = 'manage') -> bool:
        """
        Validate that user organizes the event or is an administrator.

        Raises:
            PermissionError: If user may not administer the event
        """

    @abstractmethod
    def is_event_organizer(self, event: Any, user: Any) -> bool:
        """Check if user organizes the event (boolean, no exception)."""

    @abstractmethod
    def can_scan_event(self, event: Any, user: Any) -> bool:
        """Check if user may validate tickets of the event."""
