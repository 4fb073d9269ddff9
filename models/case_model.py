#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
修繕案件資料模型
RepairCase 及其報價、費用、收入、JDM 管控子項目
文件欄位名稱沿用雲端資料庫既有的 camelCase 鍵名
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from config.settings import AppConfig
from utils.data_cleaner import DataCleaner


def generate_id() -> str:
    return str(uuid.uuid4())


class RepairType(str, Enum):
    """契約類型"""
    IN_CONTRACT = '2.1'
    OUT_OF_CONTRACT = '2.2'

    @classmethod
    def parse(cls, value: Any) -> "RepairType":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip())
        except ValueError:
            return cls(AppConfig.FORM_DEFAULTS['repair_type'])


class CaseStatus(str, Enum):
    """JDM 案件狀態，UNSET 代表待提報"""
    UNSET = ''
    REPORTED = '提報'
    CLOSED = '結報'
    REPLACED = '抽換'
    REJECTED = '退件'

    @classmethod
    def parse(cls, value: Any) -> "CaseStatus":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value or '').strip())
        except ValueError:
            return cls.UNSET


class IncomeLinkMode(str, Enum):
    """第一筆收入是否與報價總額連動"""
    LINKED = 'linked'
    MANUAL = 'manual'


# JDM 日期欄位順序（文件鍵名, 屬性名稱, 顯示名稱）
JDM_DATE_FIELDS = [
    ('reportDate', 'report_date', '提報日'),
    ('reportSubmitDate', 'report_submit_date', '送件日'),
    ('approvalDate', 'approval_date', '奉核日'),
    ('closeDate', 'close_date', '結報日'),
    ('closeSubmitDate', 'close_submit_date', '送件日'),
]

JDM_FIELD_ATTRS = {key: attr for key, attr, _ in JDM_DATE_FIELDS}
JDM_FIELD_ATTRS['caseNumber'] = 'case_number'


@dataclass
class RepairItem:
    """報價項目；is_manual=False 代表取自價目表，只能修改數量"""
    name: str = ''
    unit_price: Any = 0
    quantity: Any = 1
    unit: str = AppConfig.FORM_DEFAULTS['repair_unit']
    is_manual: bool = True
    id: str = field(default_factory=generate_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'price': self.unit_price,
            'quantity': self.quantity,
            'unit': self.unit,
            'isManual': self.is_manual,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RepairItem":
        return cls(
            id=str(data.get('id') or data.get('uid') or generate_id()),
            name=DataCleaner.clean_text(data.get('name')),
            unit_price=DataCleaner.to_number(data.get('price', data.get('unitPrice'))),
            quantity=DataCleaner.to_number(data.get('quantity')),
            unit=DataCleaner.clean_text(data.get('unit')) or AppConfig.FORM_DEFAULTS['repair_unit'],
            is_manual=bool(data.get('isManual', True)),
        )


@dataclass
class CostItem:
    """費用明細"""
    contractor: str = ''
    work_description: str = ''
    invoice_number: str = ''
    billing_date: str = ''
    amount: Any = 0
    voucher_number: str = ''
    remarks: str = ''
    id: str = field(default_factory=generate_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'contractor': self.contractor,
            'workTask': self.work_description,
            'invoiceNumber': self.invoice_number,
            'billingDate': self.billing_date,
            'costAmount': self.amount,
            'voucherNumber': self.voucher_number,
            'remarks': self.remarks,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CostItem":
        return cls(
            id=str(data.get('id') or generate_id()),
            contractor=DataCleaner.clean_text(data.get('contractor')),
            work_description=DataCleaner.clean_text(data.get('workTask', data.get('workDescription'))),
            invoice_number=DataCleaner.clean_text(data.get('invoiceNumber')),
            billing_date=DataCleaner.clean_text(data.get('billingDate')),
            amount=DataCleaner.to_number(data.get('costAmount', data.get('amount'))),
            voucher_number=DataCleaner.clean_text(data.get('voucherNumber')),
            remarks=DataCleaner.clean_text(data.get('remarks')),
        )


@dataclass
class IncomeItem:
    """收入明細"""
    source: str = AppConfig.FORM_DEFAULTS['income_source']
    receipt_number: str = ''
    receive_date: str = ''
    subtotal: Any = 0
    service_fee: Any = 0
    tax: Any = 0
    amount: Any = 0
    voucher_number: str = ''
    remarks: str = ''
    link_mode: IncomeLinkMode = IncomeLinkMode.LINKED
    id: str = field(default_factory=generate_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'source': self.source,
            'receiptNumber': self.receipt_number,
            'receiveDate': self.receive_date,
            'subtotal': self.subtotal,
            'serviceFee': self.service_fee,
            'tax': self.tax,
            'incomeAmount': self.amount,
            'incomeVoucherNumber': self.voucher_number,
            'remarks': self.remarks,
            'linkMode': self.link_mode.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "IncomeItem":
        try:
            link_mode = IncomeLinkMode(data.get('linkMode') or IncomeLinkMode.LINKED.value)
        except ValueError:
            link_mode = IncomeLinkMode.LINKED
        return cls(
            id=str(data.get('id') or generate_id()),
            source=DataCleaner.clean_text(data.get('source')),
            receipt_number=DataCleaner.clean_text(data.get('receiptNumber')),
            receive_date=DataCleaner.clean_text(data.get('receiveDate')),
            subtotal=DataCleaner.to_number(data.get('subtotal')),
            service_fee=DataCleaner.to_number(data.get('serviceFee')),
            tax=DataCleaner.to_number(data.get('tax')),
            amount=DataCleaner.to_number(data.get('incomeAmount', data.get('amount'))),
            voucher_number=DataCleaner.clean_text(data.get('incomeVoucherNumber', data.get('voucherNumber'))),
            remarks=DataCleaner.clean_text(data.get('remarks')),
            link_mode=link_mode,
        )


def normalize_checklist(items: Any) -> List[str]:
    """只保留已知的待補項目，去除重複並維持原順序"""
    result = []
    for item_id in items or []:
        if item_id in AppConfig.JDM_CHECKLIST_ITEMS and item_id not in result:
            result.append(item_id)
    return result


@dataclass
class JdmControl:
    """JDM 流程管控"""
    case_number: str = ''
    report_date: str = ''
    report_submit_date: str = ''
    approval_date: str = ''
    close_date: str = ''
    close_submit_date: str = ''
    status: CaseStatus = CaseStatus.UNSET
    checklist: List[str] = field(default_factory=list)
    remarks: str = ''

    def get(self, key: str) -> str:
        """以文件鍵名（如 reportDate、caseNumber）取得欄位值"""
        return getattr(self, JDM_FIELD_ATTRS[key]) or ''

    def to_dict(self) -> Dict[str, Any]:
        data = {key: getattr(self, attr) for key, attr in JDM_FIELD_ATTRS.items()}
        data['status'] = self.status.value
        data['checklist'] = list(self.checklist)
        data['remarks'] = self.remarks
        return data

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "JdmControl":
        data = data or {}
        values = {attr: DataCleaner.clean_text(data.get(key)) for key, attr in JDM_FIELD_ATTRS.items()}
        return cls(
            status=CaseStatus.parse(data.get('status')),
            checklist=normalize_checklist(data.get('checklist')),
            remarks=str(data.get('remarks') or ''),
            **values
        )


@dataclass
class RepairCase:
    """修繕案件"""
    station: str = ''
    address: str = ''
    tenant: str = ''
    phone: str = ''
    repair_type: RepairType = RepairType.IN_CONTRACT
    is_sub_lease: bool = False
    repair_items: List[RepairItem] = field(default_factory=list)
    cost_items: List[CostItem] = field(default_factory=list)
    income_items: List[IncomeItem] = field(default_factory=list)
    quote_title: str = ''
    site_description: str = ''
    construction_desc1: str = ''
    construction_desc2: str = ''
    completion_date: str = ''
    completion_desc1: str = ''
    completion_desc2: str = ''
    total_amount: Any = 0
    satisfaction_level: str = ''
    satisfaction_score: Optional[int] = None
    jdm_control: JdmControl = field(default_factory=JdmControl)
    id: Optional[str] = None
    created_by: Optional[str] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def new(cls) -> "RepairCase":
        """建立空白表單"""
        defaults = AppConfig.FORM_DEFAULTS
        return cls(
            repair_type=RepairType(defaults['repair_type']),
            cost_items=[CostItem()],
            income_items=[IncomeItem()],
            site_description=defaults['site_description'],
            construction_desc1=defaults['construction_desc1'],
            completion_desc1=defaults['completion_desc1'],
        )

    @property
    def status(self) -> CaseStatus:
        return self.jdm_control.status

    def is_in_contract(self) -> bool:
        return self.repair_type == RepairType.IN_CONTRACT

    def set_satisfaction(self, level: str) -> None:
        """設定滿意度分級，分數一律取該分級的固定分數"""
        level = (level or '').strip()
        labels = [label for label, _ in AppConfig.SATISFACTION_LEVELS]
        if level and level not in labels:
            raise ValueError(f"無效的滿意度分級: {level}")
        self.satisfaction_level = level
        self.satisfaction_score = AppConfig.get_satisfaction_score(level)

    def is_dirty(self) -> bool:
        """表單是否已有輸入"""
        return bool(self.station or self.tenant or self.address or self.repair_items)

    def to_dict(self) -> Dict[str, Any]:
        """轉換為文件格式"""
        return {
            'id': self.id,
            'station': self.station,
            'address': self.address,
            'tenant': self.tenant,
            'phone': self.phone,
            'repairType': self.repair_type.value,
            'isSubLease': self.is_sub_lease,
            'repairItems': [item.to_dict() for item in self.repair_items],
            'costItems': [item.to_dict() for item in self.cost_items],
            'incomeItems': [item.to_dict() for item in self.income_items],
            'quoteTitle': self.quote_title,
            'siteDescription': self.site_description,
            'constructionDesc1': self.construction_desc1,
            'constructionDesc2': self.construction_desc2,
            'completionDate': self.completion_date,
            'completionDesc1': self.completion_desc1,
            'completionDesc2': self.completion_desc2,
            'totalAmount': self.total_amount,
            'satisfactionLevel': self.satisfaction_level,
            'satisfactionScore': self.satisfaction_score,
            'jdmControl': self.jdm_control.to_dict(),
            'createdBy': self.created_by,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RepairCase":
        """從文件建立案件，缺少的欄位以空白表單預設值補齊"""
        base = cls.new()
        text = DataCleaner.clean_text

        case = cls(
            id=data.get('id') or None,
            station=text(data.get('station')),
            address=text(data.get('address')),
            tenant=text(data.get('tenant')),
            phone=text(data.get('phone')),
            repair_type=RepairType.parse(data.get('repairType', base.repair_type.value)),
            is_sub_lease=bool(data.get('isSubLease', False)),
            repair_items=[RepairItem.from_dict(i) for i in data.get('repairItems') or []],
            cost_items=[CostItem.from_dict(i) for i in data.get('costItems') or []],
            income_items=[IncomeItem.from_dict(i) for i in data.get('incomeItems') or []],
            quote_title=str(data.get('quoteTitle') or ''),
            site_description=str(data.get('siteDescription', base.site_description) or ''),
            construction_desc1=str(data.get('constructionDesc1', base.construction_desc1) or ''),
            construction_desc2=str(data.get('constructionDesc2') or ''),
            completion_date=text(data.get('completionDate')),
            completion_desc1=str(data.get('completionDesc1', base.completion_desc1) or ''),
            completion_desc2=str(data.get('completionDesc2') or ''),
            total_amount=DataCleaner.to_number(data.get('totalAmount')),
            jdm_control=JdmControl.from_dict(data.get('jdmControl')),
            created_by=data.get('createdBy') or None,
        )

        level = text(data.get('satisfactionLevel'))
        try:
            case.set_satisfaction(level)
        except ValueError:
            case.set_satisfaction('')

        updated_at = data.get('updatedAt')
        if isinstance(updated_at, datetime):
            case.updated_at = updated_at
        elif isinstance(updated_at, str) and updated_at:
            try:
                case.updated_at = datetime.fromisoformat(updated_at)
            except ValueError:
                case.updated_at = None
        return case
