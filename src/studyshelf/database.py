"""SQLite snapshot of the shared materials table.

Manages schema initialization, WAL mode pragmas, UPSERT operations, and
the approved-materials read that feeds the browse view.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from studyshelf.models import Material, MaterialStatus, MaterialType

logger = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS materials (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    subject TEXT NOT NULL,
    description TEXT,
    material_type TEXT NOT NULL
        CHECK(material_type IN ('pyq', 'notes')),

    -- Categorical fields (NULL means uncategorized)
    course TEXT,
    branch TEXT,
    semester TEXT,
    year TEXT,

    -- Opaque file reference in object storage
    file_name TEXT NOT NULL,
    file_path TEXT NOT NULL,

    uploaded_by TEXT NOT NULL DEFAULT 'Unknown',
    status TEXT NOT NULL DEFAULT 'pending'
        CHECK(status IN ('pending', 'approved', 'rejected')),

    created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%f', 'now')),
    updated_at TEXT DEFAULT (strftime('%Y-%m-%dT%H:%M:%f', 'now'))
);

CREATE INDEX IF NOT EXISTS idx_materials_status ON materials(status);
CREATE INDEX IF NOT EXISTS idx_materials_created ON materials(created_at);

-- Auto-update updated_at on any change
CREATE TRIGGER IF NOT EXISTS update_materials_timestamp
    AFTER UPDATE ON materials
    FOR EACH ROW
    BEGIN
        UPDATE materials SET updated_at = strftime('%Y-%m-%dT%H:%M:%f', 'now')
        WHERE id = NEW.id;
    END;
"""

UPSERT_SQL = """
INSERT INTO materials(id, title, subject, description, material_type,
                      course, branch, semester, year,
                      file_name, file_path, uploaded_by, status, created_at)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?,
        COALESCE(NULLIF(?, ''), strftime('%Y-%m-%dT%H:%M:%f', 'now')))
ON CONFLICT(id) DO UPDATE SET
    title = excluded.title,
    subject = excluded.subject,
    description = excluded.description,
    material_type = excluded.material_type,
    course = excluded.course,
    branch = excluded.branch,
    semester = excluded.semester,
    year = excluded.year,
    file_name = excluded.file_name,
    file_path = excluded.file_path,
    uploaded_by = excluded.uploaded_by,
    status = excluded.status
"""


def _params(m: Material) -> tuple[object, ...]:
    return (
        m.id,
        m.title,
        m.subject,
        m.description,
        m.material_type.value,
        m.course,
        m.branch,
        m.semester,
        m.year,
        m.file_name,
        m.file_path,
        m.uploaded_by,
        m.status.value,
        m.created_at,
    )


def _row_to_material(row: sqlite3.Row) -> Material:
    return Material(
        id=row["id"],
        title=row["title"],
        subject=row["subject"],
        description=row["description"],
        material_type=MaterialType(row["material_type"]),
        course=row["course"],
        branch=row["branch"],
        semester=row["semester"],
        year=row["year"],
        file_name=row["file_name"],
        file_path=row["file_path"],
        uploaded_by=row["uploaded_by"],
        created_at=row["created_at"],
        status=MaterialStatus(row["status"]),
    )


class Database:
    """SQLite database wrapper for the materials snapshot.

    Usage:
        with Database("data/materials.db") as db:
            db.upsert_materials(materials)
            approved = db.get_approved_materials()
    """

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = str(db_path)
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        self.conn = sqlite3.connect(self.db_path)
        self.conn.row_factory = sqlite3.Row
        self._setup_pragmas()
        self._setup_schema()

    def _setup_pragmas(self) -> None:
        """Configure SQLite pragmas for performance and reliability."""
        self.conn.execute("PRAGMA journal_mode=WAL")
        self.conn.execute("PRAGMA synchronous=NORMAL")
        self.conn.execute("PRAGMA foreign_keys=ON")
        self.conn.execute("PRAGMA temp_store=MEMORY")

        result = self.conn.execute("PRAGMA journal_mode").fetchone()[0]
        if result != "wal":
            logger.warning("WAL mode not enabled, got: %s", result)

    def _setup_schema(self) -> None:
        """Create tables, indexes, and triggers if they don't exist."""
        self.conn.executescript(SCHEMA_SQL)
        self.conn.execute("PRAGMA user_version = 1")

    def upsert_material(self, material: Material) -> None:
        """Insert or update a single material.

        On conflict (same id) every descriptive field and the status are
        replaced; ``created_at`` keeps its original value.
        """
        with self.conn:
            self.conn.execute(UPSERT_SQL, _params(material))

    def upsert_materials(self, materials: list[Material]) -> None:
        """Batch UPSERT materials in a single transaction."""
        with self.conn:
            self.conn.executemany(UPSERT_SQL, [_params(m) for m in materials])

    def get_materials(self, status: MaterialStatus) -> list[Material]:
        """Return materials in one review status, newest first."""
        rows = self.conn.execute(
            "SELECT * FROM materials WHERE status = ? ORDER BY created_at DESC",
            (status.value,),
        ).fetchall()
        return [_row_to_material(row) for row in rows]

    def get_approved_materials(self) -> list[Material]:
        """Return approved materials, newest first."""
        return self.get_materials(MaterialStatus.APPROVED)

    def get_material(self, material_id: str) -> Material | None:
        """Look up one material by id, in any status."""
        row = self.conn.execute(
            "SELECT * FROM materials WHERE id = ?", (material_id,)
        ).fetchone()
        return _row_to_material(row) if row is not None else None

    def set_status(self, material_id: str, status: MaterialStatus) -> bool:
        """Change the review status of a material.

        Returns:
            True if a row was updated, False if the id is unknown.
        """
        with self.conn:
            cursor = self.conn.execute(
                "UPDATE materials SET status = ? WHERE id = ?",
                (status.value, material_id),
            )
        return cursor.rowcount > 0

    def get_status_counts(self) -> dict[str, int]:
        """Return count of materials grouped by status."""
        rows = self.conn.execute(
            "SELECT status, COUNT(*) as cnt FROM materials GROUP BY status"
        ).fetchall()
        return {row["status"]: row["cnt"] for row in rows}

    def get_material_count(self) -> int:
        """Return total count of materials (all statuses)."""
        row = self.conn.execute("SELECT COUNT(*) as cnt FROM materials").fetchone()
        return row["cnt"]

    def close(self) -> None:
        """Close the database connection."""
        self.conn.close()

    def __enter__(self) -> Database:
        return self

    def __exit__(self, exc_type: type | None, exc_val: BaseException | None, exc_tb: object) -> None:
        self.close()
