from .constants import GENERATION_REQUESTS_QUEUE
from .constants import GENERATION_RESULTS_QUEUE
from .constants import JobState
from .producer import EnqueueResult
from .producer import GenerationQueueProducer
from .registry import JobRegistry

__all__ = [
    'EnqueueResult',
    'GENERATION_REQUESTS_QUEUE',
    'GENERATION_RESULTS_QUEUE',
    'GenerationQueueProducer',
    'JobRegistry',
    'JobState',
]
