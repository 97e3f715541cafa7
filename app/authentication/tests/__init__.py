"""Tests for the authentication app (custom user model and manager)."""
