from __future__ import annotations

import importlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import cast

from thinkboard.config import Config
from thinkboard.core.clock import Clock, SystemClock
from thinkboard.core.modules.email.transport import EmailTransport, build_email_transport
from thinkboard.core.storage import Storage


class Service:
    """Base class for services with access to the backing stores."""

    def __init__(self, storage: Storage) -> None:
        self.storage = storage
        self._core: Core | None = None

    async def on_start(self) -> None:
        """Initialize service on application startup."""

    async def on_stop(self) -> None:
        """Cleanup service on application shutdown."""

    @property
    def core(self) -> Core:
        """Get the core application context."""
        if self._core is None:
            raise RuntimeError("Core not set for service")
        return self._core

    def set_core(self, core: Core) -> None:
        """Set the core application context."""
        self._core = core


class Services:
    """Service registry that automatically discovers and initializes services."""

    from thinkboard.core.modules.access.service import AccessService  # noqa: PLC0415
    from thinkboard.core.modules.attachment.service import AttachmentService  # noqa: PLC0415
    from thinkboard.core.modules.identity.service import IdentityService  # noqa: PLC0415
    from thinkboard.core.modules.note.service import NoteService  # noqa: PLC0415
    from thinkboard.core.modules.reminder.service import ReminderService  # noqa: PLC0415
    from thinkboard.core.modules.share.service import ShareService  # noqa: PLC0415
    from thinkboard.core.modules.user.service import UserService  # noqa: PLC0415

    user: UserService
    identity: IdentityService
    access: AccessService
    note: NoteService
    attachment: AttachmentService
    share: ShareService
    reminder: ReminderService

    def __init__(self, storage: Storage) -> None:
        """Initialize all services automatically using service configuration."""
        self._services: list[Service] = []

        # Service configuration: (attribute_name, module_path, class_name)
        # Order matters: users are loaded before the reminder scheduler starts
        service_configs = [
            ("user", "thinkboard.core.modules.user.service", "UserService"),
            ("identity", "thinkboard.core.modules.identity.service", "IdentityService"),
            ("access", "thinkboard.core.modules.access.service", "AccessService"),
            ("note", "thinkboard.core.modules.note.service", "NoteService"),
            ("attachment", "thinkboard.core.modules.attachment.service", "AttachmentService"),
            ("share", "thinkboard.core.modules.share.service", "ShareService"),
            ("reminder", "thinkboard.core.modules.reminder.service", "ReminderService"),
        ]

        for attr_name, module_path, class_name in service_configs:
            module = importlib.import_module(module_path)
            service_class = cast(type[Service], getattr(module, class_name))
            service_instance = service_class(storage)
            setattr(self, attr_name, service_instance)
            self._services.append(service_instance)

    def set_core(self, core: Core) -> None:
        """Set core reference for all services."""
        for service in self._services:
            service.set_core(core)

    async def start_all(self) -> None:
        """Start all services that have startup logic."""
        for service in self._services:
            await service.on_start()

    async def stop_all(self) -> None:
        """Stop all services in reverse start order."""
        for service in reversed(self._services):
            await service.on_stop()


class Core:
    """Container providing config, storage, clock, email transport and all service instances."""

    config: Config
    storage: Storage
    clock: Clock
    email_transport: EmailTransport | None
    services: Services

    def __init__(
        self,
        config: Config,
        storage: Storage | None = None,
        clock: Clock | None = None,
        email_transport: EmailTransport | None = None,
    ) -> None:
        """Initialize core; collaborators not supplied are built from config."""
        self.config = config
        self.storage = storage if storage is not None else Storage.from_config(config)
        self.clock = clock if clock is not None else SystemClock()
        self.email_transport = email_transport if email_transport is not None else build_email_transport(config)
        self.services = Services(self.storage)
        self.services.set_core(self)

    @asynccontextmanager
    async def lifespan(self) -> AsyncGenerator[None]:
        """Manage application lifecycle - startup and shutdown."""
        await self.on_start()
        try:
            yield
        finally:
            await self.on_stop()

    async def on_start(self) -> None:
        """Prepare storage, then start all services."""
        await self.storage.on_start()
        await self.services.start_all()

    async def on_stop(self) -> None:
        """Stop services and close storage connections on shutdown."""
        await self.services.stop_all()
        await self.storage.on_stop()
