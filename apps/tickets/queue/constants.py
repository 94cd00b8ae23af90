GENERATION_REQUESTS_QUEUE = 'generation_requests'
GENERATION_RESULTS_QUEUE = 'generation_results'

GENERATE_TASK = 'tickets.generate'
GENERATION_RESULT_TASK = 'tickets.generation_result'


class JobState:
    WAITING = 'waiting'
    ACTIVE = 'active'
    COMPLETED = 'completed'
    FAILED = 'failed'

    ALL = (WAITING, ACTIVE, COMPLETED, FAILED)


DELAYED_COUNTER = 'delayed'
