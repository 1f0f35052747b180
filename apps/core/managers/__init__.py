"""
Core managers for CalendarEvent, Property, Lead and Viewing models.
"""
from .event import CalendarEventManager, CalendarEventQuerySet
from .lead import LeadManager, LeadQuerySet
from .property import PropertyManager, PropertyQuerySet, closed_status_q
from .viewing import ViewingManager, ViewingQuerySet

__all__ = [
    'CalendarEventQuerySet',
    'CalendarEventManager',
    'PropertyQuerySet',
    'PropertyManager',
    'LeadQuerySet',
    'LeadManager',
    'ViewingQuerySet',
    'ViewingManager',
    'closed_status_q',
]
