from unittest.mock import MagicMock
from unittest.mock import Mock

from django.core.cache import cache
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from apps.accounts.tests.factories import AdminUserFactory
from apps.accounts.tests.factories import UserFactory
from apps.events.tests.factories import EventFactory
from apps.events.tests.factories import EventGuestFactory
from apps.shared.container import get_container
from apps.tickets.exceptions import GenerationQueueError
from apps.tickets.models import TicketGenerationJob
from apps.tickets.queue.producer import EnqueueResult
from apps.tickets.tests.factories import GenerationJobFactory
from apps.tickets.tests.factories import TicketFactory


class GenerationAPITestCase(TestCase):
    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.organizer = UserFactory()
        self.event = EventFactory(organizer=self.organizer)
        self.ticket = TicketFactory(event_guest=EventGuestFactory(event=self.event))

        self.producer = Mock()
        self.producer.enqueue.return_value = EnqueueResult(accepted=True, job_uid='')
        self.producer.get_job_queue_status.return_value = 'waiting'
        get_container().override_queue_producer(lambda **kwargs: self.producer)

    def tearDown(self):
        get_container().reset_to_defaults()


class GenerationJobCreateAPITest(GenerationAPITestCase):
    """Тести для API створення задач генерації"""

    def setUp(self):
        super().setUp()
        self.url = reverse('tickets:generation-job-create')

    def test_create_job(self):
        """Тест успішного створення задачі"""
        self.client.force_authenticate(user=self.organizer)

        response = self.client.post(self.url, {'ticket_ids': [self.ticket.pk]}, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        data = response.data['data']
        self.assertEqual(data['status'], 'pending')
        self.assertEqual(data['tickets_count'], 1)
        self.assertTrue(TicketGenerationJob.objects.filter(uid=data['job_uid']).exists())
        self.producer.enqueue.assert_called_once()

    def test_requires_authentication(self):
        """Тест: анонімний запит відхиляється"""
        response = self.client.post(self.url, {'ticket_ids': [self.ticket.pk]}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_empty_ticket_list_is_rejected(self):
        """Тест: порожній список квитків дає 400"""
        self.client.force_authenticate(user=self.organizer)

        response = self.client.post(self.url, {'ticket_ids': []}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(response.data['success'])

    def test_invalid_options_are_rejected(self):
        """Тест: невідомий формат QR дає 400"""
        self.client.force_authenticate(user=self.organizer)

        response = self.client.post(
            self.url, {'ticket_ids': [self.ticket.pk], 'options': {'qr_format': 'gif'}}, format='json'
        )

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_stranger_gets_403(self):
        """Тест: сторонній користувач отримує 403"""
        self.client.force_authenticate(user=UserFactory())

        response = self.client.post(self.url, {'ticket_ids': [self.ticket.pk]}, format='json')

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['code'], 'GENERATION_PERMISSION_DENIED')

    def test_unknown_tickets_give_diagnostics(self):
        """Тест: невідомі квитки повертають 400 з діагностикою"""
        self.client.force_authenticate(user=self.organizer)

        response = self.client.post(self.url, {'ticket_ids': [999999]}, format='json')

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'NO_ENRICHABLE_TICKETS')
        self.assertEqual(response.data['details']['diagnostics'][0]['reason'], 'ticket_not_found')

    def test_queue_outage_gives_503(self):
        """Тест: недоступна черга дає 503, задача позначається failed"""
        self.producer.enqueue.side_effect = GenerationQueueError('broker down')
        self.client.force_authenticate(user=self.organizer)

        response = self.client.post(self.url, {'ticket_ids': [self.ticket.pk]}, format='json')

        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertEqual(TicketGenerationJob.objects.get(event=self.event).status, 'failed')


class GenerationJobDetailAPITest(GenerationAPITestCase):
    """Тести для API статусу та скасування задачі"""

    def setUp(self):
        super().setUp()
        self.job = GenerationJobFactory(event=self.event, created_by=self.organizer)

    def test_job_status(self):
        """Тест отримання статусу задачі"""
        self.client.force_authenticate(user=self.organizer)

        response = self.client.get(reverse('tickets:generation-job-detail', args=[self.job.uid]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data['data']
        self.assertEqual(data['job_uid'], str(self.job.uid))
        self.assertEqual(data['queue_status'], 'waiting')

    def test_unknown_job_gives_404(self):
        """Тест: невідома задача дає 404"""
        self.client.force_authenticate(user=self.organizer)

        response = self.client.get(
            reverse('tickets:generation-job-detail', args=['8c7f1f3e-2d6a-4b5e-9a0b-222222222222'])
        )

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['code'], 'GENERATION_JOB_NOT_FOUND')

    def test_cancel_job(self):
        """Тест скасування задачі та повторного скасування"""
        self.client.force_authenticate(user=self.organizer)
        url = reverse('tickets:generation-job-cancel', args=[self.job.uid])

        response = self.client.post(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['status'], 'failed')
        self.assertEqual(response.data['data']['error_message'], 'Job cancelled by user')

        again = self.client.post(url)
        self.assertEqual(again.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(again.data['code'], 'JOB_ALREADY_TERMINAL')

    def test_failed_jobs_list(self):
        """Тест списку невдалих задач"""
        GenerationJobFactory(event=self.event, status='failed', error_message='renderer crashed')
        self.client.force_authenticate(user=self.organizer)

        response = self.client.get(reverse('tickets:generation-jobs-failed'))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['count'], 1)
        self.assertEqual(response.data['data']['jobs'][0]['error_message'], 'renderer crashed')


class EventGenerationJobsAPITest(GenerationAPITestCase):
    """Тести для API задач генерації події"""

    def setUp(self):
        super().setUp()
        GenerationJobFactory(event=self.event, status='completed')
        GenerationJobFactory(event=self.event, status='failed')

    def test_list_jobs_with_status_filter(self):
        """Тест фільтрації задач за статусом"""
        self.client.force_authenticate(user=self.organizer)

        response = self.client.get(
            reverse('events:event-generation-jobs', args=[self.event.pk]), {'status': 'failed', 'limit': 10}
        )

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data['data']
        self.assertEqual(len(data['jobs']), 1)
        self.assertEqual(data['pagination']['total_items'], 1)
        self.assertEqual(data['pagination']['page_size'], 10)

    def test_stats(self):
        """Тест статистики задач події"""
        self.client.force_authenticate(user=self.organizer)

        response = self.client.get(reverse('events:event-generation-job-stats', args=[self.event.pk]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['total'], 2)
        self.assertEqual(response.data['data']['by_status']['failed'], 1)

    def test_stranger_cannot_list(self):
        """Тест: сторонній користувач не бачить задачі події"""
        self.client.force_authenticate(user=UserFactory())

        response = self.client.get(reverse('events:event-generation-jobs', args=[self.event.pk]))

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class GenerationQueueStatsAPITest(TestCase):
    """Тести для API статистики черг"""

    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.url = reverse('generation-internal:generation-queue-stats')
        self.producer = MagicMock()
        self.producer.get_queue_stats.return_value = {'queues': {'generation_requests': 0}, 'total': 0}
        get_container().override_queue_producer(lambda **kwargs: self.producer)

    def tearDown(self):
        get_container().reset_to_defaults()

    def test_admin_sees_stats(self):
        """Тест: адміністратор бачить статистику черг"""
        self.client.force_authenticate(user=AdminUserFactory())

        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['data']['total'], 0)

    def test_regular_user_is_forbidden(self):
        """Тест: звичайний користувач не має доступу"""
        self.client.force_authenticate(user=UserFactory())

        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
