"""StudyShelf: browse shared past-year questions and notes by course."""

__version__ = "0.1.0"

from studyshelf.models import Material, MaterialStatus, MaterialType

__all__ = [
    "Material",
    "MaterialStatus",
    "MaterialType",
    "__version__",
]
