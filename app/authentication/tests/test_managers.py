"""
Tests for UserManager.

Covers email-based creation, password hashing and the superuser flags.
"""

import pytest

from authentication.models import User, UserRole


class TestUserManagerCreateUser:
    """Tests for UserManager.create_user() method."""

    def test_creates_user_with_email_and_password(self, db):
        """
        Given valid email and password
        When create_user is called
        Then a user is created with those credentials
        """
        user = User.objects.create_user(email="aluna@example.com", password="SecurePass123!")

        assert user.pk is not None
        assert user.email == "aluna@example.com"
        assert user.check_password("SecurePass123!") is True

    def test_defaults_to_student_role(self, db):
        """New users are students unless told otherwise."""
        user = User.objects.create_user(email="novo@example.com", password="x-pass-123")

        assert user.role == UserRole.STUDENT
        assert user.is_student is True

    def test_normalizes_email_domain_to_lowercase(self, db):
        """The domain part of the email is lowercased."""
        user = User.objects.create_user(email="Maria.Silva@EXAMPLE.COM", password="x-pass-123")

        assert user.email == "Maria.Silva@example.com"

    def test_missing_email_raises(self, db):
        """An empty email is rejected."""
        with pytest.raises(ValueError, match="Email"):
            User.objects.create_user(email="", password="x-pass-123")

    def test_user_without_password_cannot_log_in(self, db):
        """Users created without a password get an unusable one."""
        user = User.objects.create_user(email="semsenha@example.com")

        assert user.has_usable_password() is False


class TestUserManagerCreateSuperuser:
    """Tests for UserManager.create_superuser() method."""

    def test_superuser_flags_and_admin_role(self, db):
        admin = User.objects.create_superuser(email="admin@example.com", password="x-pass-123")

        assert admin.is_staff is True
        assert admin.is_superuser is True
        assert admin.role == UserRole.ADMIN

    def test_superuser_requires_staff_flag(self, db):
        with pytest.raises(ValueError, match="is_staff"):
            User.objects.create_superuser(
                email="admin2@example.com", password="x-pass-123", is_staff=False
            )
