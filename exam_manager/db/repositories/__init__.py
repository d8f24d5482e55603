# Repository pattern: generic data access plus the unit of work that commits it

from exam_manager.db.repositories.base_repository import EntityNotFoundError, Repository
from exam_manager.db.repositories.unit_of_work import UnitOfWork

__all__ = ["EntityNotFoundError", "Repository", "UnitOfWork"]
