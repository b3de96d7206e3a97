"""Centralized SQLModel imports to ensure metadata is populated."""

from app.accounts.models import user as _user  # noqa: F401
