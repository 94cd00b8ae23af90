from unittest.mock import MagicMock
from unittest.mock import Mock

from django.core.cache import cache
from django.test import TestCase

from apps.shared.cache.cache_keys import CacheKeys
from apps.shared.cache.cache_manager import CacheManager
from apps.tickets.exceptions import GenerationQueueError
from apps.tickets.queue.constants import GENERATE_TASK
from apps.tickets.queue.constants import GENERATION_REQUESTS_QUEUE
from apps.tickets.queue.constants import JobState
from apps.tickets.queue.producer import GenerationQueueProducer
from apps.tickets.queue.registry import JobRegistry


class JobRegistryTest(TestCase):
    """Тести для реєстру задач генерації в кеші"""

    def setUp(self):
        cache.clear()
        self.registry = JobRegistry(ttl=60, max_completed=2, max_failed=1)

    def test_claim_is_idempotent(self):
        """Тест: ключ ідемпотентності захоплюється лише один раз"""
        self.assertTrue(self.registry.claim('job-1'))
        self.assertFalse(self.registry.claim('job-1'))
        self.assertEqual(self.registry.state('job-1'), JobState.WAITING)

    def test_mark_moves_between_state_lists(self):
        """Тест: задача перебуває лише в одному списку станів"""
        self.registry.claim('job-1')
        self.registry.mark('job-1', JobState.ACTIVE)
        self.registry.mark('job-1', JobState.COMPLETED)

        counts = self.registry.counts()
        self.assertEqual(counts[JobState.WAITING], 0)
        self.assertEqual(counts[JobState.ACTIVE], 0)
        self.assertEqual(counts[JobState.COMPLETED], 1)
        self.assertEqual(self.registry.state('job-1'), JobState.COMPLETED)

    def test_capped_list_evicts_oldest_key(self):
        """Тест: найстаріші завершені задачі витісняються разом з ключем"""
        for uid in ('a', 'b', 'c'):
            self.registry.claim(uid)
            self.registry.mark(uid, JobState.COMPLETED)

        self.assertEqual(self.registry.counts()[JobState.COMPLETED], 2)
        self.assertIsNone(self.registry.state('a'))
        self.assertTrue(self.registry.claim('a'))

    def test_release_forgets_job(self):
        """Тест: звільнений ключ можна захопити знову"""
        self.registry.claim('job-1')
        self.registry.release('job-1')

        self.assertIsNone(self.registry.state('job-1'))
        self.assertEqual(self.registry.counts()[JobState.WAITING], 0)
        self.assertTrue(self.registry.claim('job-1'))

    def test_unknown_state_is_rejected(self):
        """Тест: невідомий стан викликає помилку"""
        with self.assertRaises(ValueError):
            self.registry.mark('job-1', 'exploded')

    def test_retry_counter(self):
        """Тест лічильника відкладених повторів"""
        self.registry.record_retry('job-1')
        self.registry.record_retry('job-1')
        self.assertEqual(self.registry.counts()['delayed'], 2)

    def test_expired_entries_are_pruned_from_state_lists(self):
        """Тест: задачі з простроченим ключем не рахуються і видаляються зі списку"""
        for uid in ('a', 'b', 'c'):
            self.registry.claim(uid)
        cache.delete(CacheKeys.generation_job('a'))
        cache.delete(CacheKeys.generation_job('b'))

        self.assertEqual(self.registry.counts()[JobState.WAITING], 1)
        self.assertEqual(cache.get(CacheKeys.queue_state_index(GENERATION_REQUESTS_QUEUE, JobState.WAITING)), ['c'])

    def test_waiting_list_does_not_keep_stale_uids(self):
        """Тест: список очікування не росте за рахунок задач, що ніколи не завершились"""
        for index in range(5):
            self.registry.claim(f'stale-{index}')
            cache.delete(CacheKeys.generation_job(f'stale-{index}'))

        self.registry.claim('fresh')

        waiting = cache.get(CacheKeys.queue_state_index(GENERATION_REQUESTS_QUEUE, JobState.WAITING))
        self.assertEqual(waiting, ['fresh'])

    def test_state_lists_expire_with_registry_ttl(self):
        """Тест: списки станів зберігаються з тим самим TTL, що й ключі задач"""
        backend = Mock()
        backend.add.return_value = True
        backend.get.return_value = None
        registry = JobRegistry(cache_manager=CacheManager(backend=backend), ttl=60)

        registry.claim('job-1')

        backend.set.assert_any_call(
            CacheKeys.queue_state_index(GENERATION_REQUESTS_QUEUE, JobState.WAITING), ['job-1'], 60
        )


class GenerationQueueProducerTest(TestCase):
    """Тести для публікації запитів на генерацію"""

    def setUp(self):
        cache.clear()
        self.celery_app = MagicMock()
        self.registry = JobRegistry(ttl=60)
        self.producer = GenerationQueueProducer(celery_app=self.celery_app, registry=self.registry)
        self.payload = {'job_uid': 'job-1', 'event_id': 1, 'tickets': [], 'options': {}}

    def test_enqueue_publishes_with_job_uid_as_task_id(self):
        """Тест: публікація використовує uid задачі як id Celery задачі"""
        result = self.producer.enqueue(self.payload, idempotency_key='job-1', priority=3)

        self.assertTrue(result.accepted)
        self.celery_app.send_task.assert_called_once()
        args, kwargs = self.celery_app.send_task.call_args
        self.assertEqual(args[0], GENERATE_TASK)
        self.assertEqual(kwargs['task_id'], 'job-1')
        self.assertEqual(kwargs['queue'], GENERATION_REQUESTS_QUEUE)
        self.assertEqual(kwargs['priority'], 3)
        message = kwargs['kwargs']['payload']
        self.assertEqual(message['job_uid'], 'job-1')
        self.assertEqual(message['retry']['backoff']['type'], 'exponential')

    def test_same_key_is_published_once(self):
        """Тест: повторний enqueue з тим самим ключем не публікує вдруге"""
        first = self.producer.enqueue(self.payload, idempotency_key='job-1')
        second = self.producer.enqueue(self.payload, idempotency_key='job-1')

        self.assertTrue(first.accepted)
        self.assertFalse(second.accepted)
        self.assertEqual(self.celery_app.send_task.call_count, 1)

    def test_broker_failure_releases_key(self):
        """Тест: при збої брокера ключ звільняється і піднімається помилка"""
        self.celery_app.send_task.side_effect = ConnectionError('broker down')

        with self.assertRaises(GenerationQueueError):
            self.producer.enqueue(self.payload, idempotency_key='job-1')

        self.assertIsNone(self.registry.state('job-1'))

        self.celery_app.send_task.side_effect = None
        self.assertTrue(self.producer.enqueue(self.payload, idempotency_key='job-1').accepted)

    def test_registry_failure_raises_queue_error(self):
        """Тест: недоступний кеш при захопленні ключа дає помилку черги без публікації"""
        backend = Mock()
        backend.add.side_effect = ConnectionError('redis down')
        registry = JobRegistry(cache_manager=CacheManager(backend=backend), ttl=60)
        producer = GenerationQueueProducer(celery_app=self.celery_app, registry=registry)

        with self.assertRaises(GenerationQueueError) as ctx:
            producer.enqueue(self.payload, idempotency_key='job-1')

        self.assertEqual(ctx.exception.error_code, 'QUEUE_ERROR')
        self.celery_app.send_task.assert_not_called()

    def test_queue_stats(self):
        """Тест статистики черг"""
        connection = MagicMock()
        connection.default_channel.queue_declare.return_value = Mock(message_count=4)
        self.celery_app.connection_for_read.return_value.__enter__.return_value = connection

        self.producer.enqueue(self.payload, idempotency_key='job-1')
        stats = self.producer.get_queue_stats()

        self.assertEqual(stats['queues'][GENERATION_REQUESTS_QUEUE], 4)
        self.assertEqual(stats['waiting'], 1)
        self.assertEqual(stats['total'], 1)

    def test_queue_depth_unavailable(self):
        """Тест: недоступний брокер дає порожню глибину черги"""
        self.celery_app.connection_for_read.side_effect = ConnectionError('broker down')

        stats = self.producer.get_queue_stats()

        self.assertIsNone(stats['queues'][GENERATION_REQUESTS_QUEUE])
