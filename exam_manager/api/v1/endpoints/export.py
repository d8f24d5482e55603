"""
Export endpoints - Excel download per data category.
"""

from fastapi import APIRouter

from exam_manager.api.v1.responses import respond_file
from exam_manager.core.dependencies import CurrentUser
from exam_manager.db.session import Uow
from exam_manager.schemas.common import IdList
from exam_manager.services.export_service import ExportService
from exam_manager.services.workbook import DataCategory

router = APIRouter()


@router.get("/{category}")
async def export_all(uow: Uow, category: DataCategory, operator: CurrentUser):
    return respond_file(await ExportService(uow).export(category, operator.id))


@router.post("/{category}")
async def export_selected(uow: Uow, category: DataCategory, selection: IdList, operator: CurrentUser):
    """Export only the rows whose ids are listed (all rows when the list is empty)."""
    return respond_file(await ExportService(uow).export(category, operator.id, selection.ids))
