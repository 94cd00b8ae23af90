from .generation_job_dal import ApplyOutcome
from .generation_job_dal import ApplyResult
from .generation_job_dal import GenerationJobDAL
from .generation_job_dal import TicketResult
from .ticket_dal import ConsumeOutcome
from .ticket_dal import ConsumeResult
from .ticket_dal import TicketDAL
from .ticket_dal import TicketTemplateDAL
from .ticket_dal import TicketTypeDAL

__all__ = [
    'ApplyOutcome',
    'ApplyResult',
    'ConsumeOutcome',
    'ConsumeResult',
    'GenerationJobDAL',
    'TicketDAL',
    'TicketResult',
    'TicketTemplateDAL',
    'TicketTypeDAL',
]
