from unittest.mock import Mock

from django.contrib.auth.models import AnonymousUser
from django.test import TestCase

from apps.accounts.tests.factories import AdminUserFactory
from apps.accounts.tests.factories import UserFactory
from apps.events.exceptions import EventPermissionError
from apps.events.services.permission_service import EventPermissionService
from apps.events.tests.factories import EventFactory
from apps.tickets.tests.factories import GenerationJobFactory


class EventPermissionServiceTest(TestCase):
    """Тести для сервісу перевірки прав доступу до подій"""

    def setUp(self):
        self.service = EventPermissionService()
        self.organizer = UserFactory()
        self.stranger = UserFactory()
        self.admin = AdminUserFactory()
        self.event = EventFactory(organizer=self.organizer)

    def test_organizer_can_administer_event(self):
        """Тест: організатор керує своєю подією"""
        self.assertTrue(self.service.can_administer_event(self.event, self.organizer))
        self.assertTrue(self.service.validate_organizer_access(self.event, self.organizer))

    def test_admin_can_administer_any_event(self):
        """Тест: адміністратор керує будь-якою подією"""
        self.assertTrue(self.service.can_administer_event(self.event, self.admin))
        self.assertTrue(self.service.can_scan_event(self.event, self.admin))

    def test_stranger_is_denied(self):
        """Тест: сторонній користувач не має доступу"""
        self.assertFalse(self.service.can_administer_event(self.event, self.stranger))
        self.assertFalse(self.service.can_scan_event(self.event, self.stranger))

        with self.assertRaises(EventPermissionError) as context:
            self.service.validate_organizer_access(self.event, self.stranger, action='view_scans')
        self.assertEqual(context.exception.error_code, 'EVENT_PERMISSION_DENIED')

    def test_anonymous_user_is_denied(self):
        """Тест: анонімний користувач не проходить перевірку"""
        with self.assertRaises(EventPermissionError):
            self.service.validate_organizer_access(self.event, AnonymousUser())

        with self.assertRaises(EventPermissionError):
            self.service.validate_scan_access(self.event, AnonymousUser())

    def test_user_event_permissions_matrix(self):
        """Тест матриці прав користувача для події"""
        organizer_permissions = self.service.get_user_event_permissions(self.event, self.organizer)
        self.assertEqual(
            organizer_permissions,
            {
                'is_organizer': True,
                'is_admin': False,
                'can_generate_tickets': True,
                'can_scan': True,
                'can_view_scans': True,
            },
        )

        stranger_permissions = self.service.get_user_event_permissions(self.event, self.stranger)
        self.assertFalse(any(stranger_permissions.values()))

        admin_permissions = self.service.get_user_event_permissions(self.event, self.admin)
        self.assertTrue(admin_permissions['is_admin'])
        self.assertFalse(admin_permissions['is_organizer'])
        self.assertTrue(admin_permissions['can_generate_tickets'])

    def test_generation_job_visibility(self):
        """Тест: задачу генерації бачать автор, організатор і адміністратор"""
        creator = UserFactory()
        job = GenerationJobFactory(event=self.event, created_by=creator)

        self.assertTrue(self.service.can_view_generation_job(job, creator))
        self.assertTrue(self.service.can_view_generation_job(job, self.organizer))
        self.assertTrue(self.service.can_view_generation_job(job, self.admin))
        self.assertFalse(self.service.can_view_generation_job(job, self.stranger))

    def test_missing_user_is_not_organizer(self):
        """Тест: відсутній користувач не вважається організатором"""
        self.assertFalse(self.service.is_event_organizer(self.event, None))
        self.assertFalse(self.service.is_event_organizer(None, self.organizer))
        self.assertFalse(self.service.is_admin(Mock(is_staff=False, is_superuser=False)))
