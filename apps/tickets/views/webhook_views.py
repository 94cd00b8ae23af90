"""
Renderer callback endpoint.

The renderer posts the same result messages it publishes on the
`generation_results` queue. Terminal outcomes (applied, replayed, ignored,
orphan, internal errors) are acknowledged so the sender stops retrying;
only transient failures answer 503.
"""

import hashlib
import hmac
import logging

from django.conf import settings
from drf_spectacular.utils import OpenApiParameter
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.views import APIView

from apps.shared.container import get_result_reconciler
from apps.shared.exceptions import ServiceUnavailableError
from apps.shared.utils.responses import api_response
from apps.tickets.exceptions import InvalidResultMessageError
from apps.tickets.exceptions import WebhookAuthenticationError

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = 'X-Webhook-Signature'
SECRET_HEADER = 'X-Webhook-Secret'


def verify_webhook_request(body: bytes, signature: str | None, shared_secret: str | None) -> None:
    """
    Accept `sha256=<hex HMAC of body>` or the bare shared secret.

    Raises:
        WebhookAuthenticationError: neither header matches
    """
    secret = settings.WEBHOOK_SECRET
    if not secret:
        logger.error('WEBHOOK_SECRET is not configured, rejecting renderer callback')
        raise WebhookAuthenticationError('Webhook authentication is not configured')

    if signature:
        expected = hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
        provided = signature.split('=', 1)[1] if signature.startswith('sha256=') else signature
        if hmac.compare_digest(expected, provided.strip()):
            return
    elif shared_secret and hmac.compare_digest(secret.encode(), shared_secret.encode()):
        return

    logger.warning('Renderer callback with invalid credentials')
    raise WebhookAuthenticationError()


@extend_schema(tags=["Internal"])
class GenerationWebhookAPIView(APIView):
    """Renderer result callback (shared secret, no JWT)"""

    authentication_classes = ()
    permission_classes = [AllowAny]

    def get_service(self):
        return get_result_reconciler()

    @extend_schema(
        request=dict,
        parameters=[
            OpenApiParameter(SIGNATURE_HEADER, str, OpenApiParameter.HEADER, required=False),
            OpenApiParameter(SECRET_HEADER, str, OpenApiParameter.HEADER, required=False),
        ],
    )
    def post(self, request):
        # the raw body must be read before request.data consumes the stream
        verify_webhook_request(
            request.body,
            signature=request.headers.get(SIGNATURE_HEADER),
            shared_secret=request.headers.get(SECRET_HEADER),
        )

        try:
            result = self.get_service().reconcile(request.data)
        except (InvalidResultMessageError, ServiceUnavailableError):
            raise
        except Exception as e:
            logger.exception(f'Renderer callback could not be applied: {e}')
            return api_response({'acknowledged': True, 'outcome': 'error'})

        return api_response(
            {
                'acknowledged': True,
                'outcome': result.outcome.value,
                'job_uid': str(result.job.uid) if result.job else None,
                'status': result.job.status if result.job else None,
            },
            status=status.HTTP_200_OK,
        )
