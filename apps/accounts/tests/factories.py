import factory

from apps.accounts.models import CustomUser

TEST_PASSWORD = 'test-password-123'


class UserFactory(factory.django.DjangoModelFactory):
    """Factory для створення тестових користувачів"""

    class Meta:
        model = CustomUser
        django_get_or_create = ('email',)

    email = factory.Sequence(lambda n: f'user{n}@example.com')
    first_name = factory.Faker('first_name')
    last_name = factory.Faker('last_name')
    is_active = True
    password = factory.django.Password(TEST_PASSWORD)


class AdminUserFactory(UserFactory):
    """Factory для створення адміністраторів"""

    is_staff = True
