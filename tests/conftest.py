"""Shared pytest fixtures for StudyShelf tests.

Provides a temporary database, a material factory, a small approved
catalog spanning several folders, and the raw-row form of that catalog
as the hosted table would return it.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from studyshelf.database import Database
from studyshelf.models import Material, MaterialStatus, MaterialType


@pytest.fixture
def tmp_db(tmp_path: Path) -> Database:
    """Create a temporary SQLite database (file-based for WAL support)."""
    db_path = tmp_path / "test.db"
    db = Database(db_path)
    yield db
    db.close()


@pytest.fixture
def make_material():
    """Factory for Material with sensible defaults; override any field."""

    def _make(material_id: str = "m1", **overrides) -> Material:
        fields = {
            "id": material_id,
            "title": f"Material {material_id}",
            "subject": "General Studies",
            "material_type": MaterialType.PYQ,
            "file_name": f"{material_id}.pdf",
            "file_path": f"uploads/{material_id}.pdf",
            "status": MaterialStatus.APPROVED,
        }
        fields.update(overrides)
        return Material(**fields)

    return _make


@pytest.fixture
def sample_materials(make_material) -> list[Material]:
    """Six approved materials, newest first.

    Folders:
        B.Tech/CSE/Sem 3   -> dbms-2023, ds-notes
        MBA/Finance/Sem 2  -> accounts-notes
        B.Tech/CSE/Sem 1   -> maths-2022
        Uncategorized/General/Other -> misc-guide
        B.Tech/ECE/Sem 3   -> signals-2021
    """
    return [
        make_material(
            "dbms-2023",
            title="DBMS End Sem 2023",
            subject="Database Management Systems",
            material_type=MaterialType.PYQ,
            course="B.Tech",
            branch="CSE",
            semester="3",
            year="2023",
            created_at="2024-05-10T09:00:00",
        ),
        make_material(
            "accounts-notes",
            title="Financial Accounting Notes",
            subject="Accounting",
            material_type=MaterialType.NOTES,
            description="Ledgers, trial balance and final accounts",
            course="MBA",
            branch="Finance",
            semester="2",
            created_at="2024-05-01T12:00:00",
        ),
        make_material(
            "ds-notes",
            title="Data Structures Unit 2",
            subject="Data Structures",
            material_type=MaterialType.NOTES,
            description="Linked lists and stacks",
            course="B.Tech",
            branch="CSE",
            semester="3",
            created_at="2024-04-20T08:30:00",
        ),
        make_material(
            "maths-2022",
            title="Engineering Maths I",
            subject="Mathematics",
            material_type=MaterialType.PYQ,
            course="B.Tech",
            branch="CSE",
            semester="1",
            year="2022",
            created_at="2024-03-15T10:00:00",
        ),
        make_material(
            "misc-guide",
            title="Exam Survival Guide",
            subject="Study Skills",
            material_type=MaterialType.NOTES,
            created_at="2024-02-01T10:00:00",
        ),
        make_material(
            "signals-2021",
            title="Signals and Systems 2021",
            subject="Signals",
            material_type=MaterialType.PYQ,
            course="B.Tech",
            branch="ECE",
            semester="3",
            year="2021",
            created_at="2024-01-05T10:00:00",
        ),
    ]


@pytest.fixture
def sample_rows(sample_materials) -> list[dict]:
    """Raw table rows for the sample catalog, with blank optionals as ''."""
    rows = []
    for m in sample_materials:
        row = m.to_dict()
        for key in ("description", "course", "branch", "semester", "year"):
            if row[key] is None:
                row[key] = ""
        rows.append(row)
    return rows


@pytest.fixture
def populated_db_path(tmp_path: Path, sample_materials) -> Path:
    """Database file holding the sample catalog plus one pending upload."""
    db_path = tmp_path / "materials.db"
    with Database(db_path) as db:
        db.upsert_materials(sample_materials)
        db.upsert_material(
            Material(
                id="pending-1",
                title="Unreviewed Upload",
                subject="Networks",
                material_type=MaterialType.PYQ,
                file_name="cn.pdf",
                file_path="uploads/cn.pdf",
                course="B.Tech",
                branch="CSE",
                semester="5",
                created_at="2024-06-01T10:00:00",
                status=MaterialStatus.PENDING,
            )
        )
    return db_path
