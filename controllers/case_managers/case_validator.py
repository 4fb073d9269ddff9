#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
JDM 案件管控驗證器
日期先後順序、狀態必填欄位、契約內送件同日規則與儲存前檢核
"""

from typing import List, Optional, Tuple

from models.case_model import (
    CaseStatus, JdmControl, JDM_DATE_FIELDS, RepairCase, RepairType
)

DATE_KEYS = [key for key, _, _ in JDM_DATE_FIELDS]
DATE_LABELS = {key: label for key, _, label in JDM_DATE_FIELDS}

# 送件日到奉核日必須嚴格晚於
STRICT_PAIRS = {('reportSubmitDate', 'approvalDate')}
# 契約內案件：結報可早於提報送件
IN_CONTRACT_EXEMPT_PAIRS = {('reportSubmitDate', 'closeDate')}

REPORTED_REQUIRED = ['reportDate', 'reportSubmitDate']
CLOSED_REQUIRED = ['reportDate', 'reportSubmitDate', 'closeDate', 'closeSubmitDate']
REPORTED_FORBIDDEN = ['closeDate', 'closeSubmitDate']


def _is_in_contract(repair_type) -> bool:
    return RepairType.parse(repair_type) == RepairType.IN_CONTRACT


def _pair_violation(earlier_key: str, later_key: str, jdm: JdmControl, repair_type) -> Optional[str]:
    """
    檢查一組日期（earlier 在流程中先於 later）

    Returns:
        違規訊息，沒有違規或不需檢查時回傳 None
    """
    earlier = jdm.get(earlier_key)
    later = jdm.get(later_key)
    if not earlier or not later:
        return None
    if _is_in_contract(repair_type) and (earlier_key, later_key) in IN_CONTRACT_EXEMPT_PAIRS:
        return None

    is_strict = (earlier_key, later_key) in STRICT_PAIRS
    violated = earlier >= later if is_strict else earlier > later
    if not violated:
        return None
    relation = '晚於' if is_strict else '晚於或等於'
    return f"{DATE_LABELS[later_key]}應{relation}{DATE_LABELS[earlier_key]}"


def _submit_dates_differ(jdm: JdmControl, repair_type) -> bool:
    """契約內案件：提報送件日與結報送件日都有填時必須同一天"""
    if not _is_in_contract(repair_type):
        return False
    report_submit = jdm.get('reportSubmitDate')
    close_submit = jdm.get('closeSubmitDate')
    return bool(report_submit and close_submit and report_submit != close_submit)


def collect_jdm_errors(jdm: JdmControl, repair_type) -> List[str]:
    """
    收集 JDM 管控違規訊息

    Args:
        jdm: JDM 管控資料
        repair_type: 契約類型

    Returns:
        List[str]: 依偵測順序排列、去除重複的違規訊息
    """
    errors = []

    for i, earlier_key in enumerate(DATE_KEYS):
        for later_key in DATE_KEYS[i + 1:]:
            message = _pair_violation(earlier_key, later_key, jdm, repair_type)
            if message:
                errors.append(message)

    case_number = jdm.case_number.strip()
    if jdm.status == CaseStatus.REPORTED:
        if not jdm.report_date:
            errors.append("狀態為提報時，提報日必填")
        if not jdm.report_submit_date:
            errors.append("狀態為提報時，送件日必填")
        if jdm.close_date or jdm.close_submit_date:
            errors.append("案件狀態為提報時，不可填寫結報日期與送件日")
        if not case_number:
            errors.append("狀態為提報時，JDM 系統案號必填")

    if jdm.status == CaseStatus.CLOSED:
        if not jdm.report_date:
            errors.append("狀態為結報時，提報日必填")
        if not jdm.report_submit_date:
            errors.append("狀態為結報時，送件日必填")
        if not jdm.close_date:
            errors.append("狀態為結報時，結報日必填")
        if not jdm.close_submit_date:
            errors.append("狀態為結報時，送件日必填")
        if not case_number:
            errors.append("狀態為結報時，JDM 系統案號必填")

    if _submit_dates_differ(jdm, repair_type):
        errors.append("契約內案件：送件日須為同一天")

    return list(dict.fromkeys(errors))


def has_field_error(field_key: str, jdm: JdmControl, repair_type) -> bool:
    """
    單一欄位是否涉及任何違規（欄位醒目提示用）

    Args:
        field_key: 五個日期欄位之一或 caseNumber
        jdm: JDM 管控資料
        repair_type: 契約類型

    Returns:
        bool
    """
    status = jdm.status

    if field_key == 'caseNumber':
        return status in (CaseStatus.REPORTED, CaseStatus.CLOSED) and not jdm.case_number.strip()
    if field_key not in DATE_KEYS:
        raise ValueError(f"未知的 JDM 欄位: {field_key}")

    value = jdm.get(field_key)
    if status == CaseStatus.REPORTED:
        if field_key in REPORTED_REQUIRED and not value:
            return True
        if field_key in REPORTED_FORBIDDEN and value:
            return True
    if status == CaseStatus.CLOSED and field_key in CLOSED_REQUIRED and not value:
        return True

    if field_key in ('reportSubmitDate', 'closeSubmitDate') and _submit_dates_differ(jdm, repair_type):
        return True

    if not value:
        return False

    my_index = DATE_KEYS.index(field_key)
    for other_index, other_key in enumerate(DATE_KEYS):
        if other_index == my_index:
            continue
        if other_index < my_index:
            pair = (other_key, field_key)
        else:
            pair = (field_key, other_key)
        if _pair_violation(pair[0], pair[1], jdm, repair_type):
            return True
    return False


def field_error_flags(jdm: JdmControl, repair_type) -> dict:
    """所有可提示欄位的錯誤旗標"""
    return {key: has_field_error(key, jdm, repair_type) for key in DATE_KEYS + ['caseNumber']}


class CaseValidator:
    """案件儲存前檢核"""

    def validate_jdm(self, case: RepairCase) -> List[str]:
        return collect_jdm_errors(case.jdm_control, case.repair_type)

    def check_save_preconditions(self, case: RepairCase) -> Tuple[bool, str]:
        """
        儲存前檢核

        規則：
        1. 抽換、退件必須填寫備註說明原因
        2. 提報、結報必須填寫 JDM 系統案號
        3. 有管控違規時必須以備註說明

        Args:
            case: 要儲存的案件

        Returns:
            Tuple[bool, str]: (是否可儲存, 訊息)
        """
        jdm = case.jdm_control
        status = jdm.status
        has_remarks = bool(jdm.remarks.strip())

        if status in (CaseStatus.REPLACED, CaseStatus.REJECTED) and not has_remarks:
            return False, f"狀態為「{status.value}」時，必須填寫案件備註以記錄原因。"

        if status in (CaseStatus.REPORTED, CaseStatus.CLOSED) and not jdm.case_number.strip():
            return False, f"狀態為「{status.value}」時，JDM 系統案號必填。"

        errors = self.validate_jdm(case)
        if errors and not has_remarks:
            return False, f"{errors[0]}（如需保留請於案件備註說明原因）"

        return True, "驗證通過"
