# api/routes/case_routes.py
import logging
from typing import List, Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.exc import SQLAlchemyError

from api.deps import get_case_controller, get_user_id
from api.schemas.case_schemas import (
    CalculationResponse,
    CaseListResponse,
    RepairCaseSchema,
    SaveCaseResponse,
    StatusTransitionRequest,
    StatusTransitionResponse,
)
from config.settings import AppConfig
from controllers.case_controller import SAVE_FAILED_MESSAGE, CaseController
from controllers.case_managers.case_dashboard import DashboardFilter, available_stations, summarize_case
from controllers.errors import CaseNotFoundError, StationFilterLimitError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cases", tags=["cases"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# ---- helpers ---------------------------------------------------------------

def _dashboard_filter(
    search: str = Query("", description="關鍵字（門牌、承租人、站別、案號、報價標題、報價項目）"),
    stations: Optional[List[str]] = Query(None, description="站別（最多 10 個）"),
    status_filter: str = Query(AppConfig.DASHBOARD_STATUS_ALL, alias="status"),
    report_month: str = Query("", alias="reportMonth", pattern=r"^(\d{4}-\d{2})?$"),
    close_month: str = Query("", alias="closeMonth", pattern=r"^(\d{4}-\d{2})?$"),
    special_formula: str = Query("", alias="specialFormula"),
) -> DashboardFilter:
    if special_formula and special_formula not in AppConfig.SPECIAL_FORMULAS:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"未知的特殊公式: {special_formula}")
    return DashboardFilter(
        search=search,
        stations=[s for s in (stations or []) if s],
        status=status_filter or AppConfig.DASHBOARD_STATUS_ALL,
        report_month=report_month,
        close_month=close_month,
        special_formula=special_formula,
    )


# ---- calculate / transition --------------------------------------------------

@router.post("/calculate", response_model=CalculationResponse)
def calculate_case(payload: RepairCaseSchema, controller: CaseController = Depends(get_case_controller)):
    """重新計算報價、收支與 JDM 管控檢核（不儲存）"""
    case = payload.to_case()
    result = controller.calculate(case)
    return CalculationResponse(
        quote=result["quote"],
        financials=result["financials"],
        errors=result["errors"],
        field_errors=result["fieldErrors"],
        missing_approval=result["missingApproval"],
        case=case.to_dict(),
    )


@router.post("/transition", response_model=StatusTransitionResponse)
def transition_status(payload: StatusTransitionRequest, controller: CaseController = Depends(get_case_controller)):
    """點選狀態：提報、結報需確認（confirmed=true 時才套用），其餘直接套用"""
    case = payload.case.to_case()
    request = controller.request_status_change(case, payload.target)

    applied = False
    if not request.requires_confirmation or payload.confirmed:
        controller.apply_status_change(case, request.target)
        applied = True

    return StatusTransitionResponse(
        target=request.target.value,
        requires_confirmation=request.requires_confirmation,
        applied=applied,
        message=request.message,
        case=case.to_dict(),
    )


# ---- save / query --------------------------------------------------------------

@router.post("/save", response_model=SaveCaseResponse)
def save_case(
    payload: RepairCaseSchema,
    user_id: str = Depends(get_user_id),
    controller: CaseController = Depends(get_case_controller),
):
    case = payload.to_case()
    try:
        ok, message, saved = controller.save_case(case, user_id)
    except CaseNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    if not ok:
        if message == SAVE_FAILED_MESSAGE:
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=message)
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=message)
    return SaveCaseResponse(success=True, message=message, case=saved.to_dict())


@router.get("", response_model=CaseListResponse)
def list_cases(
    criteria: DashboardFilter = Depends(_dashboard_filter),
    controller: CaseController = Depends(get_case_controller),
):
    """儀表板查詢；沒有任何篩選條件時回傳空清單"""
    try:
        cases = controller.query_dashboard(criteria)
    except StationFilterLimitError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return CaseListResponse(
        total_count=len(cases),
        cases=[summarize_case(case) for case in cases],
        stations=available_stations(cases),
    )


@router.get("/export")
def export_cases(
    mode: str = Query(..., description="待追蹤事項、工作提報單、滿意度調查、內控管理"),
    criteria: DashboardFilter = Depends(_dashboard_filter),
    controller: CaseController = Depends(get_case_controller),
):
    if mode not in AppConfig.EXPORT_MODES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"不支援的匯出模式: {mode}")
    try:
        file_name, content = controller.export_cases(criteria, mode)
    except StationFilterLimitError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(file_name)}"},
    )


@router.get("/changes")
def case_changes(controller: CaseController = Depends(get_case_controller)):
    """案件清單變動代碼；讀取失敗時回傳 503，不以空白代碼表示"""
    try:
        token = controller.get_change_token()
    except SQLAlchemyError as e:
        logger.error(f"❌ 案件清單更新失敗: {e}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="案件清單更新失敗")
    return {"token": token}


@router.get("/{case_id}")
def get_case(case_id: str, controller: CaseController = Depends(get_case_controller)):
    try:
        case = controller.load_case(case_id)
    except CaseNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return case.to_dict()


@router.delete("/{case_id}")
def delete_case(case_id: str, controller: CaseController = Depends(get_case_controller)):
    try:
        ok, message = controller.delete_case(case_id)
    except CaseNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if not ok:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=message)
    return {"success": True, "message": message}
