#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
案件控制器
整合各個專門管理器，提供表單編輯、儲存、查詢、匯入匯出的統一對外介面
"""

import logging
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from config.settings import AppConfig
from controllers.errors import ImportParseError, RepairTypeLockedError

from .case_managers.case_calculator import recompute_case
from .case_managers.case_dashboard import DashboardFilter, filter_cases, is_missing_approval
from .case_managers.case_data_manager import CaseDataManager
from .case_managers.case_import_export import CaseImportExport
from .case_managers.case_progress_manager import CaseProgressManager, StatusChangeRequest
from .case_managers.case_validator import CaseValidator, field_error_flags
from .case_managers.master_data_manager import MasterDataManager
from models.case_model import (
    CostItem, IncomeItem, IncomeLinkMode, RepairCase, RepairItem, RepairType
)
from utils.case_watcher import CaseListWatcher

logger = logging.getLogger(__name__)

IMPORT_KINDS = ('address', 'price', 'cases')
SAVE_FAILED_MESSAGE = "儲存失敗"


class CaseController:
    """案件資料控制器"""

    def __init__(self, data_manager: CaseDataManager, import_export: Optional[CaseImportExport] = None,
                 watch_interval: float = 5.0):
        """
        初始化案件控制器

        Args:
            data_manager: 資料庫存取
            import_export: 試算表匯入匯出（None 則建立預設的讀寫器）
            watch_interval: 案件清單輪詢間隔（秒）
        """
        self.data_manager = data_manager
        self.import_export = import_export or CaseImportExport()
        self.validator = CaseValidator()
        self.progress_manager = CaseProgressManager()
        self.master_data = MasterDataManager()
        self.watch_interval = watch_interval

    # ==================== 表單編輯 ====================

    def new_case(self) -> RepairCase:
        """重設為空白表單"""
        return RepairCase.new()

    def load_case(self, case_id: str) -> RepairCase:
        """載入案件進行編輯"""
        return self.data_manager.get_case(case_id)

    def change_repair_type(self, case: RepairCase, repair_type) -> RepairCase:
        """
        變更契約類型

        Raises:
            RepairTypeLockedError: 已有報價項目時不可變更
        """
        new_type = RepairType.parse(repair_type)
        if new_type != case.repair_type and case.repair_items:
            raise RepairTypeLockedError("已有報價項目，無法變更契約類型")
        case.repair_type = new_type
        recompute_case(case)
        return case

    def add_price_item(self, case: RepairCase, price_item: Dict[str, Any]) -> RepairItem:
        """從價目表加入報價項目"""
        item = self.master_data.price_item_to_repair_item(price_item)
        case.repair_items.append(item)
        recompute_case(case)
        return item

    def add_manual_item(self, case: RepairCase) -> RepairItem:
        """加入自訂報價項目"""
        item = self.master_data.new_manual_item()
        case.repair_items.append(item)
        recompute_case(case)
        return item

    def update_repair_item(self, case: RepairCase, item_id: str, **changes) -> RepairItem:
        """
        修改報價項目

        價目表帶入的項目只能修改數量。

        Raises:
            KeyError: 找不到項目
            ValueError: 修改了不允許的欄位
        """
        item = self._find_item(case.repair_items, item_id)
        allowed = {'name', 'unit_price', 'quantity', 'unit'} if item.is_manual else {'quantity'}
        invalid = set(changes) - allowed
        if invalid:
            raise ValueError(f"此報價項目不可修改欄位: {', '.join(sorted(invalid))}")
        for key, value in changes.items():
            setattr(item, key, value)
        recompute_case(case)
        return item

    def remove_repair_item(self, case: RepairCase, item_id: str) -> None:
        case.repair_items.remove(self._find_item(case.repair_items, item_id))
        recompute_case(case)

    def add_cost_item(self, case: RepairCase) -> CostItem:
        item = CostItem()
        case.cost_items.append(item)
        recompute_case(case)
        return item

    def remove_cost_item(self, case: RepairCase, item_id: str) -> None:
        case.cost_items.remove(self._find_item(case.cost_items, item_id))
        recompute_case(case)

    def add_income_item(self, case: RepairCase) -> IncomeItem:
        """新增收入（第二筆以後不與報價連動）"""
        item = IncomeItem(link_mode=IncomeLinkMode.MANUAL if case.income_items else IncomeLinkMode.LINKED)
        case.income_items.append(item)
        recompute_case(case)
        return item

    def remove_income_item(self, case: RepairCase, item_id: str) -> None:
        case.income_items.remove(self._find_item(case.income_items, item_id))
        recompute_case(case)

    def set_income_link_mode(self, case: RepairCase, mode) -> RepairCase:
        """切換第一筆收入的連動模式"""
        if case.income_items:
            case.income_items[0].link_mode = IncomeLinkMode(mode)
        recompute_case(case)
        return case

    @staticmethod
    def _find_item(items: List[Any], item_id: str):
        for item in items:
            if item.id == item_id:
                return item
        raise KeyError(f"找不到項目: {item_id}")

    # ==================== 計算與檢核 ====================

    def calculate(self, case: RepairCase) -> Dict[str, Any]:
        """
        重新計算金額並回傳檢核結果

        Returns:
            Dict: quote、financials、errors、fieldErrors、missingApproval
        """
        quote, financials = recompute_case(case)
        jdm = case.jdm_control
        return {
            'quote': quote.to_dict(),
            'financials': financials.to_dict(),
            'errors': self.validator.validate_jdm(case),
            'fieldErrors': field_error_flags(jdm, case.repair_type),
            'missingApproval': is_missing_approval(case),
        }

    # ==================== 狀態 ====================

    def request_status_change(self, case: RepairCase, target) -> StatusChangeRequest:
        return self.progress_manager.request_status_change(case, target)

    def apply_status_change(self, case: RepairCase, target) -> RepairCase:
        return self.progress_manager.apply_status_change(case, target)

    def toggle_checklist_item(self, case: RepairCase, item_id: str) -> RepairCase:
        return self.progress_manager.toggle_checklist_item(case, item_id)

    # ==================== 儲存 / 刪除 ====================

    def save_case(self, case: RepairCase, author_id: str) -> Tuple[bool, str, Optional[RepairCase]]:
        """
        儲存案件

        Args:
            case: 表單內容
            author_id: 儲存者

        Returns:
            Tuple[bool, str, Optional[RepairCase]]: (成功與否, 訊息, 儲存後的案件)

        Raises:
            CaseNotFoundError: 要更新的案件已被刪除
        """
        ok, message = self.validator.check_save_preconditions(case)
        if not ok:
            logger.info(f"⚠️ 儲存前檢核未通過: {message}")
            return False, message, None

        quote, _ = recompute_case(case)
        case.total_amount = quote.total
        case.created_by = author_id

        try:
            saved = self.data_manager.save_case(case)
        except SQLAlchemyError as e:
            logger.error(f"❌ 儲存案件失敗: {e}")
            return False, SAVE_FAILED_MESSAGE, None

        return True, "案件儲存成功", saved

    def delete_case(self, case_id: str) -> Tuple[bool, str]:
        """刪除案件（CaseNotFoundError 直接往上拋出）"""
        try:
            self.data_manager.delete_case(case_id)
        except SQLAlchemyError as e:
            logger.error(f"❌ 刪除案件失敗: {e}")
            return False, "刪除失敗"
        return True, "案件已刪除"

    # ==================== 匯入 ====================

    def import_file(self, kind: str, content: bytes, author_id: str = 'system') -> Tuple[bool, str, int]:
        """
        匯入試算表

        Args:
            kind: address（門牌主檔）、price（價目表）、cases（歷史案件）
            content: xlsx 檔案內容
            author_id: 匯入者

        Returns:
            Tuple[bool, str, int]: (成功與否, 訊息, 筆數)
        """
        if kind not in IMPORT_KINDS:
            raise ValueError(f"不支援的匯入類型: {kind}")

        try:
            if kind == 'address':
                records, sheets = self.import_export.parse_address_master(content)
                self.data_manager.save_address_master(records, sheets)
                return True, f"門牌主檔匯入完成，共 {len(records)} 筆", len(records)

            if kind == 'price':
                items = self.import_export.parse_price_master(content)
                self.data_manager.save_price_master(items)
                return True, f"價目表匯入完成，共 {len(items)} 項", len(items)

            cases = self.import_export.parse_historical_cases(content, created_by=author_id or 'system')
            count = self.data_manager.bulk_insert(cases)
            return True, f"成功匯入 {count} 筆案件", count

        except ImportParseError as e:
            return False, str(e), 0
        except SQLAlchemyError as e:
            logger.error(f"❌ 匯入寫入資料庫失敗: {e}")
            return False, "匯入失敗", 0

    # ==================== 查詢 / 匯出 ====================

    def query_dashboard(self, criteria: DashboardFilter) -> List[RepairCase]:
        """
        儀表板查詢：先以狀態、站別做伺服器篩選，再套用其餘條件

        Raises:
            StationFilterLimitError: 站別超過上限
        """
        if not criteria.is_active():
            return []
        cases = self.data_manager.query_cases(criteria.status, criteria.stations)
        return filter_cases(cases, criteria)

    def export_cases(self, criteria: DashboardFilter, mode: str,
                     today: Optional[date] = None) -> Tuple[str, bytes]:
        """依目前篩選結果匯出報表"""
        if mode not in AppConfig.EXPORT_MODES:
            raise ValueError(f"不支援的匯出模式: {mode}")
        cases = self.query_dashboard(criteria)
        return self.import_export.export_cases(cases, mode, today)

    def search_addresses(self, keyword: str, station: Optional[str] = None) -> List[Dict[str, Any]]:
        records, _ = self.data_manager.load_address_master()
        return self.master_data.search_addresses(records, keyword, station)

    def search_prices(self, keyword: str) -> List[Dict[str, Any]]:
        return self.master_data.search_prices(self.data_manager.load_price_master(), keyword)

    def get_change_token(self) -> str:
        """
        案件清單的變動代碼，供 HTTP 用戶端輪詢比對；代碼不同時重新查詢列表

        Raises:
            SQLAlchemyError: 資料庫無法讀取
        """
        count, versions, latest, changes = self.data_manager.fingerprint()
        return f"{count}-{versions}-{changes}-{latest.isoformat() if latest else ''}"

    def create_watcher(self, criteria: DashboardFilter, on_change: Callable[[List[RepairCase]], None],
                       on_error: Optional[Callable[[Exception], None]] = None) -> CaseListWatcher:
        """
        建立行程內的案件清單監看器（呼叫 start() 開始，stop() 取消）

        HTTP 用戶端改以 GET /api/cases/changes 取得變動代碼輪詢。
        """
        return CaseListWatcher(
            fetch_cases=lambda: self.query_dashboard(criteria),
            fingerprint=self.data_manager.fingerprint,
            on_change=on_change,
            on_error=on_error,
            interval=self.watch_interval,
        )
