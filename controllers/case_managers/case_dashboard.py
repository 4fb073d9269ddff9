#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
案件儀表板
在伺服器篩選後的案件上套用關鍵字、站別、月份與特殊公式篩選，並產生列表摘要
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from config.settings import AppConfig
from controllers.case_managers.case_calculator import aggregate_financials
from models.case_model import CaseStatus, RepairCase, RepairType

MISSING_DATE_SORT_KEY = '9999-99-99'
COMPLETE_CHECKLIST_LABEL = '資料齊備'
MISSING_APPROVAL_LABEL = '缺奉核日'


@dataclass
class DashboardFilter:
    """儀表板篩選條件（月份為 YYYY-MM）"""
    search: str = ''
    stations: List[str] = field(default_factory=list)
    status: str = AppConfig.DASHBOARD_STATUS_ALL
    report_month: str = ''
    close_month: str = ''
    special_formula: str = ''

    def is_active(self) -> bool:
        """沒有任何條件時不顯示資料"""
        return bool(
            self.search.strip()
            or self.status != AppConfig.DASHBOARD_STATUS_ALL
            or self.stations
            or self.report_month
            or self.close_month
            or self.special_formula
        )


def _matches_search(case: RepairCase, keyword: str) -> bool:
    keyword = keyword.lower()
    fields = [
        case.address,
        case.tenant,
        case.station,
        case.jdm_control.case_number,
        case.quote_title,
    ] + [item.name for item in case.repair_items]
    return any(keyword in str(value or '').lower() for value in fields)


def _matches_status(case: RepairCase, status_filter: str) -> bool:
    if status_filter == AppConfig.DASHBOARD_STATUS_ALL:
        return True
    if status_filter == AppConfig.UNSET_STATUS_LABEL:
        return case.status == CaseStatus.UNSET
    if status_filter == AppConfig.DASHBOARD_STATUS_OPEN:
        return case.status != CaseStatus.CLOSED
    return case.status.value == status_filter


def _matches_special_formula(case: RepairCase, formula: str, report_month: str, close_month: str) -> bool:
    """
    特殊公式（本期 = 提報月份，期末 = 結報月份月底）

    日期以 YYYY-MM-DD 字串比較，結報期間為 [提報月份, 結報月份-31]。
    """
    report_date = case.jdm_control.report_date
    close_date = case.jdm_control.close_date
    status = case.status
    period_end = f"{close_month}-31"
    closed_in_period = bool(close_date) and report_month <= close_date <= period_end
    is_out_of_contract = case.repair_type == RepairType.OUT_OF_CONTRACT

    if formula == '本期已完工':
        return (report_date.startswith(report_month) and closed_in_period
                and status == CaseStatus.CLOSED and is_out_of_contract)
    if formula == '前期已完工':
        return (bool(report_date) and report_date < report_month and closed_in_period
                and status == CaseStatus.CLOSED and is_out_of_contract)
    if formula == '本期待追蹤':
        return (report_date.startswith(report_month) and not close_date
                and status == CaseStatus.REPORTED and is_out_of_contract)
    if formula == '前期待追蹤':
        return (bool(report_date) and report_date < report_month and not close_date
                and status == CaseStatus.REPORTED and is_out_of_contract)
    if formula == '約內已完工':
        return (report_date.startswith(report_month) and close_date.startswith(close_month)
                and status == CaseStatus.CLOSED and case.repair_type == RepairType.IN_CONTRACT)
    if formula == '內控管理':
        return report_date >= report_month and closed_in_period
    raise ValueError(f"未知的特殊公式: {formula}")


def filter_cases(cases: List[RepairCase], criteria: DashboardFilter) -> List[RepairCase]:
    """
    套用儀表板篩選並依提報日排序（未填提報日排最後）

    特殊公式只在提報月份與結報月份都有填時生效，否則月份為一般的前綴篩選。

    Args:
        cases: 伺服器篩選後的案件
        criteria: 篩選條件

    Returns:
        List[RepairCase]
    """
    if not criteria.is_active():
        return []

    filtered = list(cases)
    if criteria.search.strip():
        filtered = [c for c in filtered if _matches_search(c, criteria.search.strip())]
    if criteria.stations:
        filtered = [c for c in filtered if c.station in criteria.stations]
    filtered = [c for c in filtered if _matches_status(c, criteria.status)]

    if criteria.special_formula and criteria.report_month and criteria.close_month:
        filtered = [
            c for c in filtered
            if _matches_special_formula(c, criteria.special_formula, criteria.report_month, criteria.close_month)
        ]
    else:
        if criteria.report_month:
            filtered = [c for c in filtered if c.jdm_control.report_date.startswith(criteria.report_month)]
        if criteria.close_month:
            filtered = [c for c in filtered if c.jdm_control.close_date.startswith(criteria.close_month)]

    return sorted(filtered, key=lambda c: c.jdm_control.report_date or MISSING_DATE_SORT_KEY)


def is_missing_approval(case: RepairCase) -> bool:
    """契約外結報案件缺少奉核日"""
    return (case.status == CaseStatus.CLOSED
            and not case.jdm_control.approval_date
            and case.repair_type != RepairType.IN_CONTRACT)


def summarize_case(case: RepairCase) -> Dict[str, Any]:
    """儀表板列表的單列摘要"""
    checklist = case.jdm_control.checklist
    return {
        'id': case.id,
        'caseNumber': case.jdm_control.case_number,
        'station': case.station,
        'address': case.address,
        'tenant': case.tenant,
        'repairType': case.repair_type.value,
        'repairTypeLabel': AppConfig.get_repair_type_label(case.repair_type.value),
        'status': case.status.value,
        'statusLabel': case.status.value or AppConfig.UNSET_STATUS_LABEL,
        'reportDate': case.jdm_control.report_date,
        'closeDate': case.jdm_control.close_date,
        'totalAmount': case.total_amount,
        'totalCosts': aggregate_financials(case.cost_items, []).total_costs,
        'missingApproval': is_missing_approval(case),
        'flags': [MISSING_APPROVAL_LABEL] if is_missing_approval(case) else [],
        'checklist': (
            [AppConfig.get_checklist_label(item) for item in checklist]
            if checklist else [COMPLETE_CHECKLIST_LABEL]
        ),
    }


def available_stations(cases: List[RepairCase]) -> List[str]:
    """案件中出現過的站別（排序、不重複）"""
    return sorted({case.station for case in cases if case.station})
