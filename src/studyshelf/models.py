"""Data models and enums for shared study materials."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum


class MaterialType(str, Enum):
    """Kind of uploaded document."""

    PYQ = "pyq"
    NOTES = "notes"

    @property
    def label(self) -> str:
        """Short badge text shown next to a material title."""
        return "PYQ" if self is MaterialType.PYQ else "Notes"


class MaterialStatus(str, Enum):
    """Review state of an uploaded material."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass(frozen=True, slots=True)
class Material:
    """A single uploaded document: descriptive metadata plus a file reference.

    Instances are immutable. Filtering and grouping select and partition
    materials but never copy or modify them.
    """

    id: str
    title: str
    subject: str
    material_type: MaterialType
    file_name: str
    file_path: str
    description: str | None = None
    course: str | None = None
    branch: str | None = None
    semester: str | None = None
    year: str | None = None
    uploaded_by: str = "Unknown"
    created_at: str = ""
    status: MaterialStatus = MaterialStatus.APPROVED

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary with enum values as strings."""
        d = asdict(self)
        d["material_type"] = self.material_type.value
        d["status"] = self.status.value
        return d
