# api/routes/import_routes.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status

from api.deps import get_case_controller, get_user_id
from controllers.case_controller import IMPORT_KINDS, CaseController

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/import", tags=["import"])
master_router = APIRouter(prefix="/api/master", tags=["master"])


@router.post("/{kind}")
async def import_spreadsheet(
    kind: str,
    file: UploadFile = File(...),
    user_id: str = Depends(get_user_id),
    controller: CaseController = Depends(get_case_controller),
):
    """
    上傳試算表匯入
    - address：門牌主檔（所有工作表）
    - price：價目表
    - cases：歷史案件
    """
    if kind not in IMPORT_KINDS:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"不支援的匯入類型: {kind}")

    content = await file.read()
    logger.info(f"📥 收到匯入檔案 {file.filename}（{kind}，{len(content)} bytes）")

    ok, message, count = controller.import_file(kind, content, user_id)
    if not ok:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)
    return {"success": True, "message": message, "count": count, "file_name": file.filename}


@master_router.get("/addresses")
def search_addresses(
    keyword: str = Query("", description="門牌或承租人關鍵字"),
    station: Optional[str] = Query(None, description="限定站別"),
    controller: CaseController = Depends(get_case_controller),
):
    results = controller.search_addresses(keyword, station)
    return {
        "total_count": len(results),
        "results": results,
        "fields": [controller.master_data.address_to_case_fields(r) for r in results],
    }


@master_router.get("/prices")
def search_prices(
    keyword: str = Query("", description="項目名稱或編號"),
    controller: CaseController = Depends(get_case_controller),
):
    results = controller.search_prices(keyword)
    return {"total_count": len(results), "results": results}
