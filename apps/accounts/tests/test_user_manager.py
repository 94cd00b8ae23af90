from django.test import TestCase

from apps.accounts.models import CustomUser
from apps.accounts.tests.factories import AdminUserFactory
from apps.accounts.tests.factories import UserFactory


class CustomUserManagerTest(TestCase):
    """Тести для менеджера користувачів"""

    def test_create_user_normalizes_email(self):
        """Тест: email зберігається в нижньому регістрі"""
        user = CustomUser.objects.create_user('Organizer@Example.COM', password='secret-pass-1')

        self.assertEqual(user.email, 'organizer@example.com')
        self.assertTrue(user.check_password('secret-pass-1'))
        self.assertFalse(user.is_admin)

    def test_create_user_without_password(self):
        """Тест: користувач без пароля не може увійти паролем"""
        user = CustomUser.objects.create_user('operator@example.com')

        self.assertFalse(user.has_usable_password())

    def test_create_user_requires_email(self):
        """Тест: email обов'язковий"""
        with self.assertRaises(ValueError):
            CustomUser.objects.create_user('')

    def test_create_superuser(self):
        """Тест створення адміністратора"""
        user = CustomUser.objects.create_superuser('root@example.com', 'secret-pass-1')

        self.assertTrue(user.is_staff)
        self.assertTrue(user.is_superuser)
        self.assertTrue(user.is_admin)

    def test_administrators(self):
        """Тест: вибірка активних адміністраторів"""
        admin = AdminUserFactory()
        AdminUserFactory(is_active=False)
        UserFactory()

        self.assertEqual(list(CustomUser.objects.administrators()), [admin])

    def test_full_name(self):
        """Тест повного імені"""
        user = UserFactory(first_name=' Olena ', last_name='Koval')

        self.assertEqual(user.full_name, 'Olena Koval')
        self.assertEqual(str(user), 'Olena Koval')
