"""
Application startup and configuration logic.

This module builds the bridge's components from configuration and manages
their startup and shutdown sequence.
"""

import importlib
import logging
from typing import Any, List, Optional

from ..core.interfaces.lifecycle import IComponent
from ..core.interfaces.storage import IContentStore
from ..core.interfaces.uploads import IUploadBroker
from ..infrastructure.config.models import ApplicationConfig
from ..infrastructure.services.tus.server import TusServer

logger = logging.getLogger(__name__)


def load_object(import_path: str) -> Any:
    """
    Import an object from a ``package.module:attribute`` path.

    Raises:
        ValueError: If the path is malformed or the object cannot be found.
    """
    module_name, _, attribute = import_path.partition(":")
    if not module_name or not attribute:
        raise ValueError(f"Invalid import path: {import_path!r}")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ValueError(f"Cannot import module {module_name!r}: {e}") from e

    try:
        return getattr(module, attribute)
    except AttributeError as e:
        raise ValueError(f"Module {module_name!r} has no attribute {attribute!r}") from e


class ApplicationStartup:
    """
    Manages application startup and service configuration.

    Owns the upload broker and the content store for the lifetime of the
    service and guarantees the helper process is stopped on shutdown.
    """

    def __init__(self, config: ApplicationConfig) -> None:
        self._config = config
        self._upload_broker: Optional[IUploadBroker] = None
        self._content_store: Optional[IContentStore] = None
        self._started_components: List[IComponent] = []

    @property
    def upload_broker(self) -> IUploadBroker:
        if self._upload_broker is None:
            raise RuntimeError("Services have not been configured")
        return self._upload_broker

    @property
    def content_store(self) -> Optional[IContentStore]:
        return self._content_store

    def configure_services(self) -> None:
        """Create the upload broker and the configured content store."""
        logger.info("Configuring application services...")

        self._upload_broker = TusServer(self._config.tus)

        if self._config.content_store:
            factory = load_object(self._config.content_store)
            store = factory()
            if not isinstance(store, IContentStore):
                raise TypeError(
                    f"{self._config.content_store} did not produce an IContentStore")
            self._content_store = store
            logger.info(f"Using content store {type(store).__name__}")
        else:
            logger.warning("No content store configured; uploads cannot be verified")

        logger.info("Service configuration completed")

    async def start_application(self) -> None:
        """
        Start all components in order.

        A component that fails to start causes the already started ones to
        be stopped before the error is re-raised.
        """
        logger.info("Starting application components...")

        for component in self._components():
            try:
                logger.debug(f"Starting component: {component.name}")
                await component.start()
                self._started_components.append(component)
                logger.info(f"Started component: {component.name}")
            except Exception as e:
                logger.error(f"Failed to start component {component.name}: {e}")
                await self.stop_application()
                raise

        logger.info("Application startup completed successfully")

    async def stop_application(self) -> None:
        """Stop all started components in reverse order."""
        logger.info("Stopping application components...")

        for component in reversed(self._started_components):
            try:
                await component.stop()
                logger.info(f"Stopped component: {component.name}")
            except Exception as e:
                logger.error(f"Error stopping component {component.name}: {e}")

        self._started_components.clear()
        logger.info("Application shutdown completed")

    def _components(self) -> List[IComponent]:
        components: List[IComponent] = [self.upload_broker]
        if isinstance(self._content_store, IComponent):
            components.insert(0, self._content_store)
        return components
