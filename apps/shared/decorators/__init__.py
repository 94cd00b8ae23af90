"""
Shared decorators for EventFlow application.

- Database error translation
- Transient database error retries
"""

from apps.shared.decorators.database import handle_db_errors
from apps.shared.decorators.database import retry_on_transient_db_errors

__all__ = [
    'handle_db_errors',
    'retry_on_transient_db_errors',
]
