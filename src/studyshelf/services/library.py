"""Material catalog service facade wrapping Database internals.

Provides async methods for reading the approved-materials snapshot and
importing rows into it. All SQLite operations are wrapped in
asyncio.to_thread() with Database connections opened and closed within
the sync function.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from collections.abc import Iterable, Mapping

from studyshelf.models import Material, MaterialStatus
from studyshelf.schemas import decode_materials

logger = logging.getLogger(__name__)


class CatalogError(Exception):
    """Raised when the materials snapshot cannot be read or written."""


class LibraryService:
    """Async facade over the materials snapshot.

    The browse view treats ``fetch_approved_materials`` as an opaque
    upstream call: it either resolves to a full batch or raises
    ``CatalogError``.

    Usage::

        svc = LibraryService("data/materials.db")
        materials = await svc.fetch_approved_materials()
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    async def fetch_approved_materials(self) -> list[Material]:
        """Get every approved material, newest first.

        Raises:
            CatalogError: If the database cannot be opened or queried.
        """
        return await self.fetch_materials(MaterialStatus.APPROVED)

    async def fetch_materials(self, status: MaterialStatus) -> list[Material]:
        """Get every material in one review status, newest first.

        Raises:
            CatalogError: If the database cannot be opened or queried.
        """

        def _query() -> list[Material]:
            from studyshelf.database import Database

            with Database(self._db_path) as db:
                return db.get_materials(status)

        try:
            materials = await asyncio.to_thread(_query)
        except sqlite3.Error as e:
            logger.error(
                "fetch materials failed db=%s status=%s error=%r", self._db_path, status.value, e
            )
            raise CatalogError(f"Could not read materials from {self._db_path}: {e}") from e
        logger.info("fetched materials status=%s count=%d", status.value, len(materials))
        return materials

    async def import_rows(self, rows: Iterable[Mapping[str, object]]) -> int:
        """Decode raw table rows and upsert them into the snapshot.

        Returns:
            Number of rows imported.

        Raises:
            MaterialDecodeError: If any row is malformed (nothing is written).
            CatalogError: If the database write fails.
        """
        materials = decode_materials(rows)

        def _write() -> None:
            from studyshelf.database import Database

            with Database(self._db_path) as db:
                db.upsert_materials(materials)

        try:
            await asyncio.to_thread(_write)
        except sqlite3.Error as e:
            raise CatalogError(f"Could not write materials to {self._db_path}: {e}") from e
        logger.info("imported materials count=%d", len(materials))
        return len(materials)

    async def get_status_counts(self) -> dict[str, int]:
        """Get material counts keyed by review status."""

        def _query() -> dict[str, int]:
            from studyshelf.database import Database

            with Database(self._db_path) as db:
                return db.get_status_counts()

        return await asyncio.to_thread(_query)
