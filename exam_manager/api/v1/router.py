"""
API v1 router - aggregates all endpoint modules (RESTful structure).
"""

from fastapi import APIRouter

from exam_manager.api.v1.endpoints import (
    backups,
    examiners,
    exams,
    export,
    file_history,
    health,
    imports,
    operators,
    password_reset,
    reference,
)

api_router = APIRouter(prefix="/v1")

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(operators.router, prefix="/operators", tags=["operators"])
api_router.include_router(password_reset.router, prefix="/password-reset", tags=["password-reset"])
api_router.include_router(exams.router, prefix="/exams", tags=["exams"])
api_router.include_router(examiners.router, prefix="/examiners", tags=["examiners"])
api_router.include_router(reference.exam_types_router, prefix="/exam-types", tags=["exam-types"])
api_router.include_router(reference.professions_router, prefix="/professions", tags=["professions"])
api_router.include_router(reference.institutions_router, prefix="/institutions", tags=["institutions"])
api_router.include_router(export.router, prefix="/export", tags=["export"])
api_router.include_router(imports.router, prefix="/import", tags=["import"])
api_router.include_router(file_history.router, prefix="/file-history", tags=["file-history"])
api_router.include_router(backups.router, prefix="/backups", tags=["backups"])
