from datetime import datetime
from datetime import timezone
from typing import Any

from rest_framework import status as http_status
from rest_framework.response import Response


def get_timestamp() -> str:
    """ISO timestamp used in every response envelope"""
    return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')


def success_payload(data: Any = None) -> dict:
    payload = {'success': True, 'timestamp': get_timestamp()}
    if data is not None:
        payload['data'] = data
    return payload


def error_payload(message: str, code: str, details: Any = None) -> dict:
    payload = {
        'success': False,
        'error': message,
        'code': code,
        'timestamp': get_timestamp(),
    }
    if details:
        payload['details'] = details
    return payload


def api_response(data: Any = None, status: int = http_status.HTTP_200_OK) -> Response:
    """Wrap view data into {success, data, timestamp}"""
    return Response(success_payload(data), status=status)
