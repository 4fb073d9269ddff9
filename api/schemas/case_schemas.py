#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
案件相關資料模型
表單案件、狀態切換、儀表板查詢的請求與回應結構
欄位以 camelCase 別名對應案件文件的鍵名
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from config.settings import AppConfig
from models.case_model import RepairCase

DATE_PATTERN = r'^(\d{4}-\d{2}-\d{2})?$'


def _blank_to_zero(value: Any) -> Any:
    """空白金額/數量視為 0；負數與非數字交由欄位驗證拒絕"""
    if value is None or (isinstance(value, str) and not value.strip()):
        return 0
    if isinstance(value, str):
        return value.replace(',', '').strip()
    return value


class DocumentModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra='ignore')


# ==================== 案件子項目 ====================

class RepairItemSchema(DocumentModel):
    """報價項目"""
    id: Optional[str] = Field(default=None, description="項目識別碼")
    name: str = Field(default='', description="項目名稱")
    price: float = Field(default=0, ge=0, description="單價")
    quantity: float = Field(default=1, ge=0, description="數量")
    unit: str = Field(default=AppConfig.FORM_DEFAULTS['repair_unit'], description="單位")
    is_manual: bool = Field(default=True, description="是否為自訂項目")

    @field_validator('price', 'quantity', mode='before')
    @classmethod
    def blank_numbers(cls, value: Any) -> Any:
        return _blank_to_zero(value)


class CostItemSchema(DocumentModel):
    """費用明細"""
    id: Optional[str] = None
    contractor: str = Field(default='', description="維修廠商")
    work_task: str = Field(default='', description="工作內容")
    invoice_number: str = Field(default='', description="發票號碼")
    billing_date: str = Field(default='', description="請款日期")
    cost_amount: float = Field(default=0, ge=0, description="費用金額")
    voucher_number: str = Field(default='', description="傳票號碼")
    remarks: str = Field(default='', description="備註")

    @field_validator('cost_amount', mode='before')
    @classmethod
    def blank_numbers(cls, value: Any) -> Any:
        return _blank_to_zero(value)


class IncomeItemSchema(DocumentModel):
    """收入明細"""
    id: Optional[str] = None
    source: str = Field(default=AppConfig.FORM_DEFAULTS['income_source'], description="請款廠商")
    receipt_number: str = Field(default='', description="收入發票號碼")
    receive_date: str = Field(default='', description="收入日期")
    subtotal: float = Field(default=0, ge=0)
    service_fee: float = Field(default=0, ge=0)
    tax: float = Field(default=0, ge=0)
    income_amount: float = Field(default=0, ge=0, description="收入金額")
    income_voucher_number: str = Field(default='', description="收入傳票號碼")
    remarks: str = ''
    link_mode: str = Field(default='linked', pattern=r'^(linked|manual)$', description="與報價連動或手動")

    @field_validator('subtotal', 'service_fee', 'tax', 'income_amount', mode='before')
    @classmethod
    def blank_numbers(cls, value: Any) -> Any:
        return _blank_to_zero(value)


class JdmControlSchema(DocumentModel):
    """JDM 流程管控"""
    case_number: str = Field(default='', description="JDM 系統案號")
    report_date: str = Field(default='', pattern=DATE_PATTERN)
    report_submit_date: str = Field(default='', pattern=DATE_PATTERN)
    approval_date: str = Field(default='', pattern=DATE_PATTERN)
    close_date: str = Field(default='', pattern=DATE_PATTERN)
    close_submit_date: str = Field(default='', pattern=DATE_PATTERN)
    status: str = Field(default='', description="提報、結報、抽換、退件或空白（待提報）")
    checklist: List[str] = Field(default_factory=list)
    remarks: str = ''

    @field_validator('status')
    @classmethod
    def check_status(cls, value: str) -> str:
        value = value.strip()
        if value and value not in AppConfig.CASE_STATUSES:
            raise ValueError(f"無效的案件狀態: {value}")
        return value


class RepairCaseSchema(DocumentModel):
    """表單案件"""
    id: Optional[str] = Field(default=None, description="案件識別碼（新案件為空）")
    station: str = ''
    address: str = ''
    tenant: str = ''
    phone: str = ''
    repair_type: str = Field(default=AppConfig.FORM_DEFAULTS['repair_type'], description="2.1 契約內 / 2.2 契約外")
    is_sub_lease: bool = False
    repair_items: List[RepairItemSchema] = Field(default_factory=list)
    cost_items: List[CostItemSchema] = Field(default_factory=list)
    income_items: List[IncomeItemSchema] = Field(default_factory=list)
    quote_title: str = ''
    site_description: str = ''
    construction_desc1: str = ''
    construction_desc2: str = ''
    completion_date: str = Field(default='', pattern=DATE_PATTERN)
    completion_desc1: str = ''
    completion_desc2: str = ''
    satisfaction_level: str = Field(default='', description="滿意度分級（分數由分級決定）")
    jdm_control: JdmControlSchema = Field(default_factory=JdmControlSchema)

    @field_validator('repair_type')
    @classmethod
    def check_repair_type(cls, value: str) -> str:
        if value not in AppConfig.REPAIR_TYPES:
            raise ValueError(f"無效的契約類型: {value}")
        return value

    @field_validator('satisfaction_level')
    @classmethod
    def check_satisfaction(cls, value: str) -> str:
        value = value.strip()
        if value and value not in [label for label, _ in AppConfig.SATISFACTION_LEVELS]:
            raise ValueError(f"無效的滿意度分級: {value}")
        return value

    def to_case(self) -> RepairCase:
        return RepairCase.from_dict(self.model_dump(by_alias=True))


# ==================== 狀態切換 ====================

class StatusTransitionRequest(BaseModel):
    """狀態切換請求：需確認的切換在 confirmed 為 True 時才套用"""
    case: RepairCaseSchema
    target: str = Field(..., description="點選的狀態")
    confirmed: bool = Field(default=False, description="使用者已確認")

    @field_validator('target')
    @classmethod
    def check_target(cls, value: str) -> str:
        value = value.strip()
        if value and value not in AppConfig.CASE_STATUSES:
            raise ValueError(f"無效的案件狀態: {value}")
        return value


class StatusTransitionResponse(DocumentModel):
    target: str
    requires_confirmation: bool
    applied: bool
    message: str = ''
    case: Dict[str, Any]


# ==================== 回應 ====================

class CalculationResponse(DocumentModel):
    quote: Dict[str, Any]
    financials: Dict[str, Any]
    errors: List[str]
    field_errors: Dict[str, bool]
    missing_approval: bool
    case: Dict[str, Any]


class SaveCaseResponse(DocumentModel):
    success: bool
    message: str
    case: Optional[Dict[str, Any]] = None


class CaseListResponse(DocumentModel):
    """儀表板列表回應模型"""
    total_count: int = Field(..., description="總案件數")
    cases: List[Dict[str, Any]] = Field(..., description="案件摘要列表")
    stations: List[str] = Field(default_factory=list, description="可選站別")
