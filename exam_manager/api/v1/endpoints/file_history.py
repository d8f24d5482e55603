"""
File history endpoints - audit list and re-download of stored files.
"""

from fastapi import APIRouter

from exam_manager.api.v1.responses import respond, respond_file
from exam_manager.core.dependencies import CurrentUser, PageQuery
from exam_manager.db.session import Uow
from exam_manager.services.file_history_service import FileHistoryService

router = APIRouter()


@router.get("")
async def list_file_history(uow: Uow, paging: PageQuery, operator: CurrentUser):
    return respond(await FileHistoryService(uow).get_page(paging.page, paging.page_size))


@router.get("/{history_id}/download")
async def download_file(uow: Uow, history_id: int, operator: CurrentUser):
    return respond_file(await FileHistoryService(uow).get_content(history_id))
