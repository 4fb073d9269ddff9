#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
案件狀態管理器
專責 JDM 狀態切換與切換時的待補資料連動
"""

import logging
from dataclasses import dataclass

from config.settings import AppConfig
from models.case_model import CaseStatus, RepairCase

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatusChangeRequest:
    """狀態切換請求；requires_confirmation 為 True 時需使用者確認後才套用"""
    target: CaseStatus
    requires_confirmation: bool
    message: str = ''


class CaseProgressManager:
    """案件狀態管理器"""

    def request_status_change(self, case: RepairCase, target) -> StatusChangeRequest:
        """
        點選狀態按鈕

        重複點選目前狀態代表取消（回到待提報）；提報、結報會連動待補清單，
        需要先確認；其他狀態直接套用。

        Args:
            case: 案件
            target: 目標狀態

        Returns:
            StatusChangeRequest
        """
        target = CaseStatus.parse(target)
        if target == case.status:
            return StatusChangeRequest(CaseStatus.UNSET, False)

        message = AppConfig.STATUS_CONFIRM_MESSAGES.get(target.value)
        if message:
            return StatusChangeRequest(target, True, message)
        return StatusChangeRequest(target, False)

    def click_status(self, case: RepairCase, target) -> StatusChangeRequest:
        """點選狀態：不需確認的切換直接套用，需確認的回傳請求等待確認"""
        request = self.request_status_change(case, target)
        if not request.requires_confirmation:
            self.apply_status_change(case, request.target)
        return request

    def apply_status_change(self, case: RepairCase, target) -> RepairCase:
        """
        套用狀態切換與待補清單連動

        - 提報：移除「維修前照片」與「報價單」
        - 結報：清空待補清單
        - 抽換、退件、取消：待補清單不變
        """
        target = CaseStatus.parse(target)
        jdm = case.jdm_control

        if target == CaseStatus.CLOSED:
            jdm.checklist = []
        else:
            removals = AppConfig.STATUS_CHECKLIST_REMOVALS.get(target.value, [])
            jdm.checklist = [item for item in jdm.checklist if item not in removals]

        jdm.status = target
        logger.info(f"🔄 已變更狀態為{target.value or AppConfig.UNSET_STATUS_LABEL}")
        return case

    def toggle_checklist_item(self, case: RepairCase, item_id: str) -> RepairCase:
        """切換單一待補項目"""
        if item_id not in AppConfig.JDM_CHECKLIST_ITEMS:
            raise ValueError(f"未知的待補項目: {item_id}")
        checklist = case.jdm_control.checklist
        if item_id in checklist:
            checklist.remove(item_id)
        else:
            checklist.append(item_id)
        return case
