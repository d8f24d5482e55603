"""
Import endpoints - Excel templates and multipart workbook upload.
"""

from fastapi import APIRouter, File, UploadFile

from exam_manager.api.v1.responses import respond, respond_file
from exam_manager.core.dependencies import CurrentUser, Editor
from exam_manager.db.session import Uow
from exam_manager.services.import_service import ImportService
from exam_manager.services.workbook import DataCategory

router = APIRouter()


@router.get("/templates/{category}")
async def download_template(uow: Uow, category: DataCategory, operator: CurrentUser):
    return respond_file(await ImportService(uow).template(category, operator.id))


@router.post("/{category}")
async def import_workbook(uow: Uow, category: DataCategory, operator: Editor, file: UploadFile = File(...)):
    """Rows that fail validation or duplicate existing data are reported in data.errors."""
    content = await file.read()
    return respond(await ImportService(uow).import_file(category, content, operator.id, file.filename))
