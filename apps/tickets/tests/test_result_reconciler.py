from datetime import datetime
from datetime import timezone as dt_timezone
from unittest.mock import Mock
from unittest.mock import call

from django.test import TestCase

from apps.tickets.dal.generation_job_dal import ApplyOutcome
from apps.tickets.dal.generation_job_dal import GenerationJobDAL
from apps.tickets.exceptions import InvalidResultMessageError
from apps.tickets.models import TicketGenerationJob
from apps.tickets.queue.constants import JobState
from apps.tickets.services.result_reconciler import ResultReconciler
from apps.tickets.services.result_reconciler import parse_timestamp
from apps.tickets.tests.factories import TicketFactory


class ResultReconcilerTest(TestCase):
    """Тести для узгодження результатів рендерера з задачами"""

    def setUp(self):
        self.ticket = TicketFactory()
        self.job = GenerationJobDAL().create_job(
            event_id=self.ticket.event_guest.event_id,
            tickets_count=1,
            details={'ticket_ids': [self.ticket.pk]},
        )
        self.registry = Mock()
        self.reconciler = ResultReconciler(registry=self.registry)

    def _message(self, status, **extra):
        return {
            'job_uid': str(self.job.uid),
            'status': status,
            'timestamp': '2026-03-01T10:00:00Z',
            **extra,
        }

    def test_completed_result_updates_job_and_tickets(self):
        """Тест: результат completed оновлює задачу та квитки"""
        self.reconciler.reconcile(self._message('processing'))
        result = self.reconciler.reconcile(
            self._message(
                'completed',
                tickets=[
                    {
                        'ticket_id': self.ticket.pk,
                        'success': True,
                        'qr_code_data': 'qr-payload',
                        'pdf_file': {'url': 'https://files/ticket.pdf'},
                    }
                ],
                summary={'total': 1, 'successful': 1, 'failed': 0},
                processing_time_ms=1200,
            )
        )

        self.assertEqual(result.outcome, ApplyOutcome.APPLIED)
        job = TicketGenerationJob.objects.get(pk=self.job.pk)
        self.assertEqual(job.status, 'completed')
        self.assertEqual(job.tickets_processed, 1)
        self.assertEqual(job.details['summary'], {'total': 1, 'successful': 1, 'failed': 0})

        self.ticket.refresh_from_db()
        self.assertEqual(self.ticket.qr_code_data, 'qr-payload')
        self.assertEqual(self.ticket.ticket_file_url, 'https://files/ticket.pdf')

        self.registry.mark.assert_has_calls(
            [call(str(self.job.uid), JobState.ACTIVE), call(str(self.job.uid), JobState.COMPLETED)]
        )

    def test_duplicate_result_is_replayed_without_registry_update(self):
        """Тест: дубль результату не змінює стан і реєстр"""
        self.reconciler.reconcile(self._message('completed'))
        self.registry.reset_mock()

        result = self.reconciler.reconcile(self._message('completed'))

        self.assertEqual(result.outcome, ApplyOutcome.REPLAYED)
        self.registry.mark.assert_not_called()

    def test_late_processing_after_completion_is_ignored(self):
        """Тест: запізнілий processing не повертає задачу назад"""
        self.reconciler.reconcile(self._message('completed'))

        result = self.reconciler.reconcile(self._message('processing'))

        self.assertEqual(result.outcome, ApplyOutcome.IGNORED)
        self.assertEqual(TicketGenerationJob.objects.get(pk=self.job.pk).status, 'completed')

    def test_unknown_job_is_orphan(self):
        """Тест: результат невідомої задачі не змінює БД"""
        result = self.reconciler.reconcile(
            {'job_uid': 'b7d7b8f2-0a57-4a55-9f3c-000000000000', 'status': 'completed', 'timestamp': 1767225600000}
        )

        self.assertEqual(result.outcome, ApplyOutcome.ORPHAN)
        self.registry.mark.assert_not_called()

    def test_malformed_uid_is_orphan(self):
        """Тест: некоректний uid задачі вважається orphan"""
        result = self.reconciler.reconcile({'job_uid': 'not-a-uuid', 'status': 'completed', 'timestamp': 1})
        self.assertEqual(result.outcome, ApplyOutcome.ORPHAN)

    def test_job_id_alias_is_accepted(self):
        """Тест: поле job_id приймається як синонім job_uid"""
        message = self._message('processing')
        message['job_id'] = message.pop('job_uid')

        result = self.reconciler.reconcile(message)

        self.assertEqual(result.outcome, ApplyOutcome.APPLIED)

    def test_missing_fields_are_rejected(self):
        """Тест: повідомлення без обов'язкових полів відхиляється"""
        with self.assertRaises(InvalidResultMessageError) as context:
            self.reconciler.reconcile({'status': 'completed'})

        self.assertEqual(context.exception.error_code, 'MISSING_REQUIRED_FIELDS')
        self.assertEqual(context.exception.context['missing'], ['job_uid', 'timestamp'])

    def test_invalid_status_and_timestamp_are_rejected(self):
        """Тест відхилення невідомого статусу та некоректного часу"""
        with self.assertRaises(InvalidResultMessageError) as status_error:
            self.reconciler.reconcile(self._message('pending'))
        self.assertEqual(status_error.exception.error_code, 'INVALID_STATUS')

        with self.assertRaises(InvalidResultMessageError) as time_error:
            self.reconciler.reconcile(self._message('completed', timestamp='yesterday'))
        self.assertEqual(time_error.exception.error_code, 'INVALID_TIMESTAMP')

        with self.assertRaises(InvalidResultMessageError) as overflow_error:
            self.reconciler.reconcile(self._message('completed', timestamp=10**20))
        self.assertEqual(overflow_error.exception.error_code, 'INVALID_TIMESTAMP')
        self.assertEqual(TicketGenerationJob.objects.get(pk=self.job.pk).status, 'pending')

    def test_non_dict_message_is_rejected(self):
        """Тест: повідомлення не-об'єкт відхиляється"""
        with self.assertRaises(InvalidResultMessageError) as context:
            self.reconciler.reconcile(['completed'])
        self.assertEqual(context.exception.error_code, 'INVALID_MESSAGE')

    def test_registry_failure_does_not_break_reconciliation(self):
        """Тест: збій реєстру не зупиняє застосування результату"""
        self.registry.mark.side_effect = RuntimeError('cache down')

        result = self.reconciler.reconcile(self._message('failed', error_message='renderer crashed'))

        self.assertEqual(result.outcome, ApplyOutcome.APPLIED)
        job = TicketGenerationJob.objects.get(pk=self.job.pk)
        self.assertEqual(job.status, 'failed')
        self.assertEqual(job.error_message, 'renderer crashed')


class ParseTimestampTest(TestCase):
    """Тести для розбору часу з повідомлень рендерера"""

    def test_iso_string(self):
        """Тест ISO-рядка з Z"""
        self.assertEqual(
            parse_timestamp('2026-03-01T10:00:00Z'), datetime(2026, 3, 1, 10, 0, tzinfo=dt_timezone.utc)
        )

    def test_epoch_milliseconds(self):
        """Тест мілісекунд від епохи"""
        self.assertEqual(parse_timestamp(0), datetime(1970, 1, 1, tzinfo=dt_timezone.utc))

    def test_naive_string_is_utc(self):
        """Тест: час без зони вважається UTC"""
        self.assertEqual(parse_timestamp('2026-03-01 10:00:00').tzinfo, dt_timezone.utc)

    def test_garbage(self):
        """Тест некоректних значень"""
        self.assertIsNone(parse_timestamp('yesterday'))
        self.assertIsNone(parse_timestamp(None))
        self.assertIsNone(parse_timestamp(True))

    def test_out_of_range_epoch(self):
        """Тест: час поза допустимим діапазоном дає None"""
        self.assertIsNone(parse_timestamp(10**20))
        self.assertIsNone(parse_timestamp(-(10**20)))
        self.assertIsNone(parse_timestamp(float('inf')))
        self.assertIsNone(parse_timestamp(float('nan')))
