"""
Factory Boy factories for school models.

Usage:
    from school.tests.factories import EnrollmentFactory, StudentFactory

    student = StudentFactory()                      # valid billing data
    student = StudentFactory(cpf="")                # incomplete billing data
    enrollment = EnrollmentFactory(student=student) # inactive by default
"""

from decimal import Decimal

import factory

from authentication.tests.factories import UserFactory
from school.models import Enrollment, SchoolClass, Student


class StudentFactory(factory.django.DjangoModelFactory):
    """Student with billing data that passes validation."""

    class Meta:
        model = Student

    user = factory.SubFactory(UserFactory)
    full_name = factory.Sequence(lambda n: f"Aluna Numero{n} Silva")
    email = factory.LazyAttribute(lambda o: o.user.email)
    cpf = "529.982.247-25"
    whatsapp = "(11) 98765-4321"
    address = "Rua das Flores, 123"
    postal_code = "01310-100"
    asaas_customer_id = None


class SchoolClassFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = SchoolClass

    name = factory.Sequence(lambda n: f"Ballet Turma {n}")
    monthly_fee = Decimal("250.00")


class EnrollmentFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Enrollment

    student = factory.SubFactory(StudentFactory)
    school_class = factory.SubFactory(SchoolClassFactory)
    is_active = False
