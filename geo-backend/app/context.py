from __future__ import annotations

import logging
from typing import Optional

from app.config import Settings
from app.crs.catalog import Catalog, load_catalog
from app.registry import CATALOG, SETTINGS, ServiceRegistry

logger = logging.getLogger(__name__)


class SessionClosed(RuntimeError):
    pass


class GeoSession:
    """Holds the catalog and settings for the lifetime of an application run.

    Created by the embedding application, opened once at startup and closed
    at shutdown. Services are resolved from the registry when the session
    opens, not per call.
    """

    def __init__(self, settings: Optional[Settings] = None, catalog: Optional[Catalog] = None):
        self._settings = settings
        self._preloaded = catalog
        self.registry = ServiceRegistry()
        self._catalog: Optional[Catalog] = None
        self._open = False

    @property
    def is_open(self) -> bool:
        return self._open

    def open(self) -> "GeoSession":
        if self._open:
            return self
        settings = self._settings or Settings.from_env()
        catalog = self._preloaded or load_catalog(settings.projections_file)
        self.registry.register(SETTINGS, settings)
        self.registry.register(CATALOG, catalog)
        self._settings = self.registry.resolve(SETTINGS, Settings)
        self._catalog = self.registry.resolve(CATALOG, Catalog)
        self._open = True
        logger.info("geo session opened (%d projections)", len(catalog))
        return self

    def close(self) -> None:
        if not self._open:
            return
        self.registry.clear()
        self._catalog = None
        self._open = False
        logger.info("geo session closed")

    @property
    def catalog(self) -> Catalog:
        if not self._open or self._catalog is None:
            raise SessionClosed("geo session is not open")
        return self._catalog

    @property
    def settings(self) -> Settings:
        if not self._open:
            raise SessionClosed("geo session is not open")
        return self._settings  # type: ignore[return-value]

    def __enter__(self) -> "GeoSession":
        return self.open()

    def __exit__(self, *exc) -> None:
        self.close()


__all__ = ["GeoSession", "SessionClosed"]
