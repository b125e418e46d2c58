"""Project-wide named constants.

Folder sentinel labels, the permissive filter value, and the course
catalog shared by the filter panel, the CLI, and upload validation.
"""

# Folder labels used when a material leaves a categorical field empty
UNCATEGORIZED: str = "Uncategorized"
GENERAL: str = "General"
OTHER: str = "Other"
SEMESTER_PREFIX: str = "Sem "

# Filter value meaning "no constraint on this field"
ALL: str = "all"

# Branches offered for each course. Order is display order.
COURSE_BRANCHES: dict[str, tuple[str, ...]] = {
    "B.Tech": ("CSE", "ECE", "Mechanical", "Civil", "EEE", "IT"),
    "MCA": ("General",),
    "MBA": ("Finance", "Marketing", "HR", "Operations"),
}

SEMESTERS: tuple[str, ...] = tuple(str(n) for n in range(1, 9))

SUBJECT_MIN_LENGTH: int = 2
SUBJECT_MAX_LENGTH: int = 100
