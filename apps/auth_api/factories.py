import factory
from django.contrib.auth import get_user_model
from faker import Faker

from apps.roles_api.models import UserRole

fake = Faker('pt_BR')

User = get_user_model()


class UserFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = User
        skip_postgeneration_save = True

    email = factory.Sequence(lambda n: f'user{n}@poolservice.test')
    full_name = factory.Faker('name', locale='pt_BR')
    phone = factory.Faker('msisdn')

    @factory.post_generation
    def password(self, create, extracted, **kwargs):
        raw_password = extracted or 'testpassword'
        self.set_password(raw_password)
        if create:
            self.save()

    @factory.post_generation
    def roles(self, create, extracted, **kwargs):
        """UserFactory(roles=[Role.TECHNICIAN]) asigna roles al usuario"""
        if not create or not extracted:
            return
        for role in extracted:
            UserRole.objects.get_or_create(user=self, role=role)
