from django.db.models import ProtectedError
from django.test import TestCase
from django.utils import timezone

from apps.accounts.tests.factories import UserFactory
from apps.events.tests.factories import EventFactory
from apps.events.tests.factories import EventGuestFactory
from apps.shared.exceptions import ResourceNotFoundError
from apps.tickets.dal.ticket_dal import ConsumeOutcome
from apps.tickets.dal.ticket_dal import TicketDAL
from apps.tickets.dal.ticket_dal import TicketTemplateDAL
from apps.tickets.dal.ticket_dal import TicketTypeDAL
from apps.tickets.models import Ticket
from apps.tickets.models import TicketTemplate
from apps.tickets.models import TicketType
from apps.tickets.tests.factories import TicketFactory
from apps.tickets.tests.factories import TicketTemplateFactory
from apps.tickets.tests.factories import TicketTypeFactory


class TicketDALTest(TestCase):
    """Тести для DAL квитків"""

    def setUp(self):
        self.dal = TicketDAL()
        self.user = UserFactory()
        self.event_guest = EventGuestFactory()
        self.ticket_type = TicketTypeFactory(event=self.event_guest.event)

    def test_create_ticket_generates_code(self):
        """Тест створення квитка з автоматичним кодом"""
        ticket = self.dal.create_ticket(
            {'event_guest': self.event_guest, 'ticket_type': self.ticket_type, 'price': 25},
            user=self.user,
        )

        self.assertTrue(ticket.ticket_code)
        self.assertFalse(ticket.is_validated)
        self.assertEqual(ticket.created_by, self.user)
        self.assertEqual(self.dal.get_ticket_by_id(ticket.pk), ticket)

    def test_update_ticket_cannot_touch_validation(self):
        """Тест: оновлення не змінює прапорець використання квитка"""
        ticket = TicketFactory(event_guest=self.event_guest, ticket_type=self.ticket_type)

        self.dal.update_ticket(
            ticket,
            {'price': 30, 'is_validated': True, 'validated_at': timezone.now()},
            user=self.user,
        )

        ticket.refresh_from_db()
        self.assertEqual(ticket.price, 30)
        self.assertFalse(ticket.is_validated)
        self.assertIsNone(ticket.validated_at)
        self.assertEqual(ticket.updated_by, self.user)

    def test_deleted_ticket_is_hidden_and_cannot_be_consumed(self):
        """Тест: видалений квиток не знаходиться і не може бути використаний"""
        ticket = TicketFactory(event_guest=self.event_guest, ticket_type=self.ticket_type)

        self.assertTrue(self.dal.delete_ticket(ticket, user=self.user))

        with self.assertRaises(ResourceNotFoundError):
            self.dal.get_ticket_by_id(ticket.pk)
        self.assertTrue(Ticket.all_objects.filter(pk=ticket.pk).exists())
        self.assertEqual(self.dal.consume_ticket(ticket.pk).outcome, ConsumeOutcome.NOT_FOUND)


class TicketTypeDALTest(TestCase):
    """Тести для DAL типів квитків"""

    def setUp(self):
        self.dal = TicketTypeDAL()
        self.user = UserFactory()
        self.event = EventFactory()

    def test_create_and_list_for_event(self):
        """Тест створення типу квитка та списку типів події"""
        vip = self.dal.create_ticket_type(
            {'event': self.event, 'name': 'VIP', 'type': TicketType.Kind.PAID, 'price': 100},
            user=self.user,
        )
        TicketTypeFactory()

        result = self.dal.list_for_event(self.event.pk)

        self.assertEqual(result['items'], [vip])
        self.assertEqual(result['meta']['total_items'], 1)
        self.assertEqual(vip.created_by, self.user)

    def test_update_ticket_type(self):
        """Тест оновлення типу квитка"""
        ticket_type = TicketTypeFactory(event=self.event, quantity=100)

        self.dal.update_ticket_type(ticket_type, {'quantity': 0}, user=self.user)

        ticket_type.refresh_from_db()
        self.assertTrue(ticket_type.is_unlimited)
        self.assertEqual(ticket_type.updated_by, self.user)

    def test_deleted_ticket_type_is_hidden(self):
        """Тест: видалений тип квитка не знаходиться"""
        ticket_type = TicketTypeFactory(event=self.event)

        self.dal.delete_ticket_type(ticket_type, user=self.user)

        with self.assertRaises(ResourceNotFoundError):
            self.dal.get_ticket_type_by_id(ticket_type.pk)
        self.assertEqual(self.dal.list_for_event(self.event.pk)['items'], [])
        self.assertTrue(TicketType.all_objects.filter(pk=ticket_type.pk).exists())

    def test_ticket_type_with_tickets_cannot_be_hard_deleted(self):
        """Тест: тип квитка з квитками захищений від фізичного видалення"""
        ticket = TicketFactory()

        with self.assertRaises(ProtectedError):
            ticket.ticket_type.delete()


class TicketTemplateDALTest(TestCase):
    """Тести для DAL шаблонів квитків"""

    def setUp(self):
        self.dal = TicketTemplateDAL()
        self.user = UserFactory()

    def test_create_and_get_template(self):
        """Тест створення шаблону квитка"""
        template = self.dal.create_template(
            {'name': 'Classic', 'source_files_path': '/templates/classic/'},
            user=self.user,
        )

        fetched = self.dal.get_template_by_id(template.pk)
        self.assertEqual(fetched.name, 'Classic')
        self.assertFalse(fetched.is_customizable)
        self.assertEqual(fetched.created_by, self.user)

    def test_deleted_template_is_hidden(self):
        """Тест: видалений шаблон не знаходиться, квитки зберігають посилання"""
        template = TicketTemplateFactory()
        ticket = TicketFactory(ticket_template=template)

        self.dal.delete_template(template, user=self.user)

        with self.assertRaises(ResourceNotFoundError):
            self.dal.get_template_by_id(template.pk)
        self.assertTrue(TicketTemplate.all_objects.filter(pk=template.pk).exists())
        ticket.refresh_from_db()
        self.assertEqual(ticket.ticket_template_id, template.pk)
