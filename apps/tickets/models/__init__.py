"""
Tickets models package
"""

from apps.tickets.models.generation_job import TicketGenerationJob
from apps.tickets.models.ticket import Ticket
from apps.tickets.models.ticket import TicketTemplate
from apps.tickets.models.ticket import TicketType

__all__ = [
    'Ticket',
    'TicketGenerationJob',
    'TicketTemplate',
    'TicketType',
]
