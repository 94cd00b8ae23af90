import hashlib
import hmac
import json
from unittest.mock import patch

from django.core.cache import cache
from django.test import TestCase
from django.test import override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from apps.shared.exceptions import ServiceUnavailableError
from apps.tickets.dal.generation_job_dal import GenerationJobDAL
from apps.tickets.models import TicketGenerationJob
from apps.tickets.tests.factories import TicketFactory

WEBHOOK_SECRET = 'test-webhook-secret'


def sign(body: bytes) -> str:
    return 'sha256=' + hmac.new(WEBHOOK_SECRET.encode(), body, hashlib.sha256).hexdigest()


@override_settings(WEBHOOK_SECRET=WEBHOOK_SECRET)
class GenerationWebhookAPITest(TestCase):
    """Тести для webhook результатів рендерера"""

    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.url = reverse('generation-internal:generation-webhook')
        self.ticket = TicketFactory()
        self.job = GenerationJobDAL().create_job(
            event_id=self.ticket.event_guest.event_id,
            tickets_count=1,
            details={'ticket_ids': [self.ticket.pk]},
        )

    def _post(self, message, **extra):
        body = json.dumps(message).encode()
        return self.client.generic('POST', self.url, body, content_type='application/json', **extra)

    def _message(self, status_value='completed'):
        return {'job_uid': str(self.job.uid), 'status': status_value, 'timestamp': '2026-03-01T10:00:00Z'}

    def test_signed_callback_is_applied(self):
        """Тест: підписаний HMAC результат застосовується"""
        message = self._message()
        body = json.dumps(message).encode()

        response = self.client.generic(
            'POST', self.url, body, content_type='application/json', HTTP_X_WEBHOOK_SIGNATURE=sign(body)
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['outcome'], 'applied')
        self.assertEqual(response.data['data']['status'], 'completed')
        self.assertEqual(TicketGenerationJob.objects.get(pk=self.job.pk).status, 'completed')

    def test_shared_secret_header_is_accepted(self):
        """Тест: спільний секрет у заголовку приймається"""
        response = self._post(self._message('processing'), HTTP_X_WEBHOOK_SECRET=WEBHOOK_SECRET)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['outcome'], 'applied')

    def test_bad_signature_is_rejected(self):
        """Тест: невірний підпис дає 401 і не змінює задачу"""
        response = self._post(self._message(), HTTP_X_WEBHOOK_SIGNATURE='sha256=deadbeef')

        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['code'], 'INVALID_WEBHOOK_SIGNATURE')
        self.assertEqual(TicketGenerationJob.objects.get(pk=self.job.pk).status, 'pending')

    def test_missing_credentials_are_rejected(self):
        """Тест: запит без облікових даних відхиляється"""
        response = self._post(self._message())
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_missing_fields_return_400(self):
        """Тест: неповне повідомлення дає 400"""
        response = self._post({'status': 'completed'}, HTTP_X_WEBHOOK_SECRET=WEBHOOK_SECRET)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'MISSING_REQUIRED_FIELDS')

    def test_out_of_range_timestamp_returns_400(self):
        """Тест: час поза допустимим діапазоном дає 400 і не змінює задачу"""
        message = {**self._message(), 'timestamp': 10**20}

        response = self._post(message, HTTP_X_WEBHOOK_SECRET=WEBHOOK_SECRET)

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'INVALID_TIMESTAMP')
        self.assertEqual(TicketGenerationJob.objects.get(pk=self.job.pk).status, 'pending')

    def test_replay_is_acknowledged(self):
        """Тест: повторний результат підтверджується з outcome replayed"""
        self._post(self._message(), HTTP_X_WEBHOOK_SECRET=WEBHOOK_SECRET)
        response = self._post(self._message(), HTTP_X_WEBHOOK_SECRET=WEBHOOK_SECRET)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['outcome'], 'replayed')

    def test_unknown_job_is_acknowledged_as_orphan(self):
        """Тест: результат невідомої задачі підтверджується як orphan"""
        message = {
            'job_uid': '5e0b7c1c-9d0e-4c59-8d7f-111111111111',
            'status': 'completed',
            'timestamp': '2026-03-01T10:00:00Z',
        }

        response = self._post(message, HTTP_X_WEBHOOK_SECRET=WEBHOOK_SECRET)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['outcome'], 'orphan')
        self.assertIsNone(response.data['data']['job_uid'])

    @patch('apps.tickets.views.webhook_views.get_result_reconciler')
    def test_transient_failure_returns_503(self, mock_get_reconciler):
        """Тест: тимчасовий збій БД дає 503 для повторної доставки"""
        mock_get_reconciler.return_value.reconcile.side_effect = ServiceUnavailableError('database down')

        response = self._post(self._message(), HTTP_X_WEBHOOK_SECRET=WEBHOOK_SECRET)

        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)

    @patch('apps.tickets.views.webhook_views.get_result_reconciler')
    def test_internal_error_is_acknowledged(self, mock_get_reconciler):
        """Тест: внутрішня помилка підтверджується, щоб рендерер не повторював"""
        mock_get_reconciler.return_value.reconcile.side_effect = RuntimeError('boom')

        response = self._post(self._message(), HTTP_X_WEBHOOK_SECRET=WEBHOOK_SECRET)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data'], {'acknowledged': True, 'outcome': 'error'})

    @override_settings(WEBHOOK_SECRET='')
    def test_unconfigured_secret_rejects_everything(self):
        """Тест: без налаштованого секрету webhook нічого не приймає"""
        response = self._post(self._message(), HTTP_X_WEBHOOK_SECRET='')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
