"""
application.dto - Data Transfer Objects for service input/output.

These are the structured requests and results that services exchange with
callers (REST endpoints, CLI commands, the seeder).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from domain.entities import ROLE_USER, User


@dataclass(frozen=True)
class RegisterRequest:
    """Input for user registration (and admin user creation)."""
    email: str
    password: str
    name: str
    timezone: Optional[str] = None
    role: str = ROLE_USER


@dataclass(frozen=True)
class LoginRequest:
    """Input for user login."""
    email: str
    password: str


@dataclass(frozen=True)
class AuthToken:
    """JWT token response after successful register/login."""
    access_token: str
    user: User
    token_type: str = "bearer"


@dataclass(frozen=True)
class UserUpdate:
    """Partial user update. None means "leave unchanged"."""
    email: Optional[str] = None
    password: Optional[str] = None
    name: Optional[str] = None
    timezone: Optional[str] = None
    role: Optional[str] = None


@dataclass(frozen=True)
class SeedReport:
    """What SeedService.run() wrote."""
    users: list[str] = field(default_factory=list)
    menus: int = 0
    preferences: int = 0
    schedules: int = 0
