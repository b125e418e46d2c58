"""Pydantic models for decoding and validating material records.

Rows arrive untyped from the hosted materials table (or a JSON export of
it). ``MaterialRow`` decodes one row into a ``Material`` so the browse core
can assume well-formed input. ``MaterialDraft`` validates a new upload
before it is stored for review.
"""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

from studyshelf.constants import (
    COURSE_BRANCHES,
    SEMESTERS,
    SUBJECT_MAX_LENGTH,
    SUBJECT_MIN_LENGTH,
)
from studyshelf.models import Material, MaterialStatus, MaterialType


class MaterialDecodeError(ValueError):
    """Raised when a raw row cannot be decoded into a Material."""

    def __init__(self, index: int, row_id: object, error: ValidationError) -> None:
        self.index = index
        self.row_id = row_id
        self.error = error
        first = error.errors()[0] if error.errors() else {}
        where = ".".join(str(part) for part in first.get("loc", ())) or "row"
        super().__init__(
            f"row {index} (id={row_id!r}) is invalid: {where}: {first.get('msg', error)}"
        )


def _blank_to_none(value: object) -> object:
    """Map blank strings to None and numbers to their string form."""
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str) and not value.strip():
        return None
    return value


class MaterialRow(BaseModel):
    """One row of the materials table as returned by the data source."""

    id: str
    title: str
    subject: str
    material_type: MaterialType
    file_name: str = ""
    file_path: str = ""
    description: str | None = None
    course: str | None = None
    branch: str | None = None
    semester: str | None = None
    year: str | None = None
    profiles: dict | None = None
    created_at: str = ""
    status: MaterialStatus = MaterialStatus.APPROVED

    model_config = ConfigDict(extra="ignore")

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> object:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator(
        "description", "course", "branch", "semester", "year", mode="before"
    )
    @classmethod
    def _optional_text(cls, value: object) -> object:
        return _blank_to_none(value)

    @field_validator("created_at", mode="before")
    @classmethod
    def _timestamp_text(cls, value: object) -> object:
        return "" if value is None else str(value)

    def to_material(self) -> Material:
        """Build the immutable Material the browse core works with.

        The uploader shown is the joined profile email. The raw
        ``uploaded_by`` column holds a user id and is never displayed.
        """
        email = (self.profiles or {}).get("email")
        return Material(
            id=self.id,
            title=self.title,
            subject=self.subject,
            material_type=self.material_type,
            file_name=self.file_name,
            file_path=self.file_path,
            description=self.description,
            course=self.course,
            branch=self.branch,
            semester=self.semester,
            year=self.year,
            uploaded_by=email or "Unknown",
            created_at=self.created_at,
            status=self.status,
        )


def decode_material(row: Mapping[str, object], index: int = 0) -> Material:
    """Decode a single raw row.

    Raises:
        MaterialDecodeError: If the row is missing required fields or
            carries an unknown material type or status.
    """
    try:
        return MaterialRow.model_validate(dict(row)).to_material()
    except ValidationError as e:
        raise MaterialDecodeError(index, row.get("id"), e) from e


def decode_materials(rows: Iterable[Mapping[str, object]]) -> list[Material]:
    """Decode a batch of rows, preserving order. Fails on the first bad row."""
    return [decode_material(row, i) for i, row in enumerate(rows)]


class MaterialDraft(BaseModel):
    """A new upload awaiting review, validated like the upload form."""

    subject: str
    material_type: MaterialType = MaterialType.PYQ
    file_name: str
    title: str | None = None
    description: str | None = None
    year: str | None = None
    semester: str | None = None
    course: str | None = None
    branch: str | None = None

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    @field_validator("title", "description", "year", "semester", "course", "branch", mode="before")
    @classmethod
    def _optional_text(cls, value: object) -> object:
        return _blank_to_none(value)

    @field_validator("subject")
    @classmethod
    def _check_subject(cls, value: str) -> str:
        if len(value) < SUBJECT_MIN_LENGTH:
            raise ValueError("Subject is required")
        if len(value) > SUBJECT_MAX_LENGTH:
            raise ValueError("Subject too long")
        return value

    @field_validator("file_name")
    @classmethod
    def _check_file_name(cls, value: str) -> str:
        if not value:
            raise ValueError("Please select a file to upload")
        return value

    @field_validator("semester")
    @classmethod
    def _check_semester(cls, value: str | None) -> str | None:
        if value is not None and value not in SEMESTERS:
            raise ValueError(f"Semester must be one of {', '.join(SEMESTERS)}")
        return value

    @field_validator("course")
    @classmethod
    def _check_course(cls, value: str | None) -> str | None:
        if value is not None and value not in COURSE_BRANCHES:
            raise ValueError(f"Unknown course {value!r}")
        return value

    @model_validator(mode="after")
    def _check_branch(self) -> MaterialDraft:
        if self.branch is None:
            return self
        if self.course is None:
            raise ValueError("Select a course before choosing a branch")
        if self.branch not in COURSE_BRANCHES[self.course]:
            raise ValueError(f"Branch {self.branch!r} is not offered for {self.course}")
        return self

    def to_material(
        self,
        material_id: str,
        file_path: str,
        uploaded_by: str = "Unknown",
        created_at: str = "",
    ) -> Material:
        """Build a pending Material for this draft.

        The title defaults to the file name without its extension.
        """
        return Material(
            id=material_id,
            title=self.title or os.path.splitext(self.file_name)[0],
            subject=self.subject,
            material_type=self.material_type,
            file_name=self.file_name,
            file_path=file_path,
            description=self.description,
            course=self.course,
            branch=self.branch,
            semester=self.semester,
            year=self.year,
            uploaded_by=uploaded_by,
            created_at=created_at,
            status=MaterialStatus.PENDING,
        )
