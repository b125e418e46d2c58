"""Filter criteria and the compound filter over a material batch.

``filter_materials`` is a pure function: it selects the subsequence of
materials that satisfies every active predicate and never reorders or
copies records. Cross-field rules (branch depends on course) are the
caller's job; ``FilterCriteria.with_course`` implements the reset.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace

from studyshelf.constants import ALL, COURSE_BRANCHES
from studyshelf.models import Material


@dataclass(frozen=True)
class FilterCriteria:
    """Active filter predicates chosen by the user.

    Every categorical field holds either ``"all"`` (no constraint) or the
    exact stored value to match. The default instance is fully permissive.
    """

    query: str = ""
    material_type: str = ALL
    course: str = ALL
    branch: str = ALL
    semester: str = ALL

    def is_empty(self) -> bool:
        """Return True if no predicate constrains the result."""
        return (
            not self.query
            and self.material_type == ALL
            and self.course == ALL
            and self.branch == ALL
            and self.semester == ALL
        )

    def update(self, **changes: str) -> FilterCriteria:
        """Return a copy with the given fields replaced.

        A change of ``course`` goes through ``with_course`` so a stale
        branch never survives, unless the same call sets ``branch`` too.
        """
        if "course" in changes and changes["course"] != self.course:
            criteria = self.with_course(changes.pop("course"))
            return replace(criteria, **changes) if changes else criteria
        changes.pop("course", None)
        return replace(self, **changes) if changes else self

    def with_course(self, course: str) -> FilterCriteria:
        """Return a copy with a new course and the branch reset to ``"all"``."""
        return replace(self, course=course, branch=ALL)

    def describe(self) -> str:
        """Compact ``field=value`` summary of the active predicates."""
        parts: list[str] = []
        if self.query:
            parts.append(f"query={self.query!r}")
        for name in ("material_type", "course", "branch", "semester"):
            value = getattr(self, name)
            if value != ALL:
                parts.append(f"{name}={value}")
        return ", ".join(parts) or "none"


def branch_options(course: str) -> tuple[str, ...]:
    """Branches selectable for a course. Empty for ``"all"`` or an unknown course."""
    return COURSE_BRANCHES.get(course, ())


def matches_query(material: Material, query: str) -> bool:
    """Case-insensitive substring match against title, subject, or description."""
    if not query:
        return True
    needle = query.lower()
    if needle in material.title.lower() or needle in material.subject.lower():
        return True
    return material.description is not None and needle in material.description.lower()


def matches(material: Material, criteria: FilterCriteria) -> bool:
    """Return True if the material satisfies every active predicate."""
    if not matches_query(material, criteria.query):
        return False
    if criteria.material_type != ALL and material.material_type.value != criteria.material_type:
        return False
    if criteria.course != ALL and material.course != criteria.course:
        return False
    if criteria.branch != ALL and material.branch != criteria.branch:
        return False
    if criteria.semester != ALL and material.semester != criteria.semester:
        return False
    return True


def filter_materials(
    materials: Iterable[Material], criteria: FilterCriteria
) -> list[Material]:
    """Select the materials matching all active criteria, in input order."""
    if criteria.is_empty():
        return list(materials)
    return [m for m in materials if matches(m, criteria)]
