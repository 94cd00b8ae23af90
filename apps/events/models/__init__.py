"""
Events models package
"""

from apps.events.models.event import Event
from apps.events.models.event import EventManager
from apps.events.models.event import EventQuerySet
from apps.events.models.event_guest import EventGuest
from apps.events.models.guest import Guest

__all__ = [
    'Event',
    'EventGuest',
    'EventManager',
    'EventQuerySet',
    'Guest',
]
