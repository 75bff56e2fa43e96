"""
factory - Composition root for the meal planner backend.

ALL dependency wiring happens here. No other module constructs its own
dependencies. Adapters (CLI, REST) call this factory to get fully
configured services.

Usage:
    from factory import ServiceFactory
    from infrastructure.config import Settings

    config = Settings.from_env()
    factory = ServiceFactory(config)
    await factory.initialize()  # one-time startup

    service = factory.create_suggestion_service()
    suggestion = await service.generate_today(user_id, "Asia/Bangkok")
"""

from __future__ import annotations

import logging
import random
import time
from typing import Callable, Optional

from infrastructure.config import Settings
from infrastructure.persistence.connection import AsyncSQLiteConnection
from infrastructure.persistence.migrations import run_migrations
from infrastructure.persistence.user_repo import SQLiteUserRepository
from infrastructure.persistence.menu_repo import SQLiteMenuRepository
from infrastructure.persistence.preference_repo import SQLitePreferenceRepository
from infrastructure.persistence.schedule_repo import SQLiteScheduleRepository
from infrastructure.persistence.suggestion_repo import SQLiteDailySuggestionRepository
from application.services.authentication import AuthenticationService
from application.services.candidate_cache import CandidateCache
from application.services.menus import MenuService
from application.services.preferences import PreferenceService
from application.services.schedules import ScheduleService
from application.services.seeding import SeedService
from application.services.suggestions import SuggestionService
from application.services.users import UserService

logger = logging.getLogger(__name__)


class ServiceFactory:
    """Composition root — wires all dependencies together.

    Owns the process-wide CandidateCache; every SuggestionService and
    MenuService it creates shares that one instance. Call initialize()
    once at startup, then create services as needed.
    """

    def __init__(
        self,
        config: Settings,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._config = config
        self._connection = AsyncSQLiteConnection(config.db_path)
        self._rng = rng or random.Random()
        self._cache = CandidateCache(
            ttl_seconds=config.suggestion_cache_ttl_seconds,
            clock=clock,
        )
        self._initialized = False

    @property
    def config(self) -> Settings:
        return self._config

    @property
    def candidate_cache(self) -> CandidateCache:
        return self._cache

    async def initialize(self) -> None:
        """One-time startup: run migrations.

        Must be called before creating services.
        """
        logger.info("Initializing ServiceFactory (db=%s)...", self._config.db_path)
        await run_migrations(self._connection)
        self._initialized = True
        logger.info("ServiceFactory ready")

    # ------------------------------------------------------------------
    # Service creation
    # ------------------------------------------------------------------

    def create_suggestion_service(self) -> SuggestionService:
        """Create a SuggestionService sharing the process-wide cache."""
        self._ensure_initialized()
        return SuggestionService(
            menu_catalog=SQLiteMenuRepository(self._connection),
            preference_store=SQLitePreferenceRepository(self._connection),
            suggestion_store=SQLiteDailySuggestionRepository(self._connection),
            cache=self._cache,
            rng=self._rng,
            sample_size=self._config.suggestion_sample_size,
        )

    def create_authentication_service(self) -> AuthenticationService:
        """Create an AuthenticationService with all dependencies wired."""
        return AuthenticationService(
            user_repo=SQLiteUserRepository(self._connection),
            jwt_secret=self._config.jwt_secret,
            jwt_expiry_hours=self._config.jwt_expiry_hours,
            default_timezone=self._config.default_timezone,
        )

    def create_user_service(self) -> UserService:
        return UserService(
            user_repo=SQLiteUserRepository(self._connection),
            auth_service=self.create_authentication_service(),
        )

    def create_menu_service(self) -> MenuService:
        self._ensure_initialized()
        return MenuService(
            menu_repo=SQLiteMenuRepository(self._connection),
            cache=self._cache,
        )

    def create_preference_service(self) -> PreferenceService:
        return PreferenceService(SQLitePreferenceRepository(self._connection))

    def create_schedule_service(self) -> ScheduleService:
        return ScheduleService(SQLiteScheduleRepository(self._connection))

    def create_seed_service(self) -> SeedService:
        """Create the sample-data seeder (CLI `seed`)."""
        self._ensure_initialized()
        return SeedService(
            user_repo=SQLiteUserRepository(self._connection),
            menu_repo=SQLiteMenuRepository(self._connection),
            preference_repo=SQLitePreferenceRepository(self._connection),
            schedule_repo=SQLiteScheduleRepository(self._connection),
            cache=self._cache,
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            raise RuntimeError(
                "ServiceFactory not initialized. Call await factory.initialize() first."
            )
