#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
案件匯入匯出管理器
專責門牌主檔、價目表、歷史案件的匯入轉換，以及依匯出模式產生報表

"""

import logging
import re
import uuid
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from config.settings import AppConfig
from controllers.case_managers.case_calculator import aggregate_financials, round_half_up
from controllers.errors import ImportParseError
from models.case_model import (
    CaseStatus, CostItem, IncomeItem, IncomeLinkMode, RepairCase, RepairItem, RepairType
)
from utils.data_cleaner import DataCleaner
from utils.date_normalizer import DateNormalizer
from utils.excel import ExcelReader, ExcelWriter

logger = logging.getLogger(__name__)

IMPORT_FAILED_MESSAGE = "匯入失敗"

ADDRESS_HEADER_PATTERN = re.compile(r'門牌|地址')
DIGITS_PATTERN = re.compile(r'\d+')

# 價目表：前 4 列為表頭，B 欄編號、C 欄名稱、G 欄單價
PRICE_HEADER_ROWS = 4
PRICE_ID_COL = 1
PRICE_NAME_COL = 2
PRICE_VALUE_COL = 6

# 歷史案件日期欄位（欄位名稱, 備註標籤）
HISTORICAL_DATE_COLUMNS = [
    ('JDM提報日期', '提報'),
    ('提報送件日期', '送件'),
    ('奉核日', '奉核'),
    ('結報日期', '結報'),
    ('結報送件日期', '送件'),
    ('收入發票日期', '發票日'),
]
SUB_LEASE_COLUMNS = ['備註', '欄1', '欄2']
SUB_LEASE_KEYWORD = '包租'
IN_HOUSE_BILLING_VENDOR = '晟晁'
INCOME_TAX_DIVISOR = 1.05


def _cell(row: List[Any], index: int) -> Any:
    return row[index] if index < len(row) else None


def _json_value(value: Any) -> Any:
    """儲存格值轉為可存入 JSON 文件的值"""
    if DataCleaner.is_blank(value):
        return ''
    if isinstance(value, (datetime, date)):
        return DateNormalizer.format_date(value)
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _combined_description(case: RepairCase) -> str:
    return f"{case.site_description.strip()} {case.construction_desc1.strip()}".strip()


class CaseImportExport:
    """案件匯入匯出管理器"""

    def __init__(self, reader: Optional[ExcelReader] = None, writer: Optional[ExcelWriter] = None):
        """
        初始化匯入匯出管理器

        Args:
            reader: Excel 讀取器（建立時即檢查依賴是否就緒）
            writer: Excel 寫入器
        """
        self.reader = reader or ExcelReader()
        self.writer = writer or ExcelWriter()

    # ==================== 匯入 ====================

    def _run_import(self, label: str, parse, content: bytes):
        """任何解析錯誤都中止整批匯入，對外只回報「匯入失敗」"""
        try:
            return parse(content)
        except Exception as e:
            logger.error(f"❌ {label}匯入失敗: {e}")
            raise ImportParseError(IMPORT_FAILED_MESSAGE) from e

    def parse_address_master(self, content: bytes) -> Tuple[List[Dict[str, Any]], List[str]]:
        """
        解析門牌主檔（所有工作表）

        每個工作表以第一個出現「門牌」或「地址」的列為標題列，之後每列成為一筆紀錄，
        並以工作表名稱記錄所屬站別。

        Returns:
            Tuple[List[Dict], List[str]]: (門牌紀錄, 工作表名稱)

        Raises:
            ImportParseError: 檔案無法解析
        """
        return self._run_import('門牌主檔', self._parse_address_master, content)

    def _parse_address_master(self, content: bytes):
        sheets = self.reader.read_sheets(content)
        records = []

        for sheet_name, rows in sheets.items():
            if not rows:
                continue

            header_index = 0
            for index, row in enumerate(rows):
                if any(ADDRESS_HEADER_PATTERN.search(DataCleaner.clean_text(c)) for c in row):
                    header_index = index
                    break
            headers = rows[header_index]

            for row_index, row in enumerate(rows[header_index + 1:]):
                if all(DataCleaner.is_blank(value) for value in row):
                    continue
                record = {
                    'sourceStation': sheet_name,
                    '_uid': f"{sheet_name}-{row_index}-{uuid.uuid4()}",
                }
                for col, header in enumerate(headers):
                    key = DataCleaner.clean_text(header)
                    if key:
                        record[key] = _json_value(_cell(row, col))
                records.append(record)

        logger.info(f"📥 門牌主檔解析完成：{len(records)} 筆，{len(sheets)} 個站別")
        return records, list(sheets.keys())

    def parse_price_master(self, content: bytes) -> List[Dict[str, Any]]:
        """
        解析價目表（第一個工作表，略過前 4 列表頭）

        Returns:
            List[Dict]: {id, name, unit, price}，名稱空白的列會略過
        """
        return self._run_import('價目表', self._parse_price_master, content)

    def _parse_price_master(self, content: bytes):
        rows = self.reader.read_first_sheet(content)
        items = []
        for row in rows[PRICE_HEADER_ROWS:]:
            name = DataCleaner.clean_text(_cell(row, PRICE_NAME_COL))
            if not name:
                continue
            items.append({
                'id': DataCleaner.clean_text(_cell(row, PRICE_ID_COL)),
                'name': name,
                'unit': AppConfig.FORM_DEFAULTS['repair_unit'],
                'price': DataCleaner.to_number(_cell(row, PRICE_VALUE_COL)),
            })
        logger.info(f"📥 價目表解析完成：{len(items)} 項")
        return items

    def parse_historical_cases(self, content: bytes, created_by: str = 'system') -> List[RepairCase]:
        """
        解析歷史案件試算表，每列轉為一筆案件

        Args:
            content: xlsx 檔案內容
            created_by: 匯入者

        Returns:
            List[RepairCase]

        Raises:
            ImportParseError: 任一列轉換失敗即整批中止
        """
        def parse(data):
            cases = [build_case_from_row(row, created_by) for row in self.reader.read_records(data)]
            logger.info(f"📥 歷史案件解析完成：{len(cases)} 筆")
            return cases

        return self._run_import('歷史案件', parse, content)

    # ==================== 匯出 ====================

    def build_export_frame(self, cases: List[RepairCase], mode: str) -> pd.DataFrame:
        """
        依匯出模式產生報表資料

        Args:
            cases: 篩選後的案件（已排序）
            mode: 匯出模式（待追蹤事項、工作提報單、滿意度調查、內控管理）

        Returns:
            pd.DataFrame
        """
        columns = AppConfig.EXPORT_MODES.get(mode)
        if columns is None:
            raise ValueError(f"不支援的匯出模式: {mode}")

        if mode == '待追蹤事項':
            rows = [self._tracking_row(index, case) for index, case in enumerate(cases, 1)]
        elif mode == '工作提報單':
            rows = [self._work_report_row(case) for case in cases]
        elif mode == '滿意度調查':
            rows = [self._satisfaction_row(case) for case in cases]
        else:
            rows = [self._internal_control_row(case) for case in cases]

        df = pd.DataFrame(rows, columns=columns)
        if mode == '內控管理':
            df = self._append_internal_control_summary(df, cases)
        return df

    def export_cases(self, cases: List[RepairCase], mode: str, today: Optional[date] = None) -> Tuple[str, bytes]:
        """
        匯出報表

        Returns:
            Tuple[str, bytes]: (檔名 {模式}_{YYYY-MM-DD}.xlsx, 檔案內容)
        """
        df = self.build_export_frame(cases, mode)
        content = self.writer.write_workbook({mode: df})
        file_name = f"{mode}_{(today or date.today()).isoformat()}.xlsx"
        logger.info(f"📤 已匯出 {len(cases)} 筆案件：{file_name}")
        return file_name, content

    def _tracking_row(self, index: int, case: RepairCase) -> Dict[str, Any]:
        jdm = case.jdm_control
        return {
            '項次': index,
            '案號': jdm.case_number,
            '站別': case.station,
            '地址': case.address,
            '報修日期': DateNormalizer.to_display(jdm.report_date),
            '故障問題描述': _combined_description(case),
        }

    def _work_report_row(self, case: RepairCase) -> Dict[str, Any]:
        jdm = case.jdm_control
        return {
            '案號': jdm.case_number,
            '站別': case.station,
            '地址': case.address,
            '故障描述': _combined_description(case),
            '報修日': DateNormalizer.to_display(jdm.report_date),
            '完工日': DateNormalizer.to_display(jdm.close_date),
        }

    def _satisfaction_row(self, case: RepairCase) -> Dict[str, Any]:
        return {
            'JDM系統案號': case.jdm_control.case_number,
            '捷運站點': case.station,
            '門牌': case.address,
            '施工說明': _combined_description(case),
            '滿意度分級': case.satisfaction_level or '--',
            '滿意度分數': case.satisfaction_score,
            '類別': AppConfig.get_repair_type_label(case.repair_type.value),
        }

    def _internal_control_row(self, case: RepairCase) -> Dict[str, Any]:
        financials = aggregate_financials(case.cost_items, case.income_items)
        return {
            '案號': case.jdm_control.case_number,
            '地址': case.address,
            '費用合計': financials.total_costs,
            '維修廠商': ', '.join(item.contractor for item in case.cost_items),
            '費用發票': ', '.join(item.invoice_number for item in case.cost_items),
            '收入合計': financials.total_income,
            '請款廠商': ', '.join(item.source for item in case.income_items),
            '收入發票': ', '.join(item.receipt_number for item in case.income_items),
        }

    def build_internal_control_summary(self, cases: List[RepairCase]) -> pd.DataFrame:
        """
        內控管理統計：依契約內/外分列案件數、費用、收入與淨利

        Returns:
            pd.DataFrame: 欄位 統計項目、契約內、契約外、合計
        """
        stats = {}
        for repair_type in RepairType:
            group = [case for case in cases if case.repair_type == repair_type]
            costs = sum(aggregate_financials(c.cost_items, c.income_items).total_costs for c in group)
            income = sum(aggregate_financials(c.cost_items, c.income_items).total_income for c in group)
            stats[repair_type] = {
                '案件數': len(group),
                '費用合計': costs,
                '收入合計': income,
                '淨利': income - costs,
            }

        rows = []
        for label in ['案件數', '費用合計', '收入合計', '淨利']:
            in_contract = stats[RepairType.IN_CONTRACT][label]
            out_of_contract = stats[RepairType.OUT_OF_CONTRACT][label]
            rows.append([label, in_contract, out_of_contract, in_contract + out_of_contract])
        return pd.DataFrame(rows, columns=AppConfig.INTERNAL_CONTROL_SUMMARY_COLUMNS)

    def _append_internal_control_summary(self, df: pd.DataFrame, cases: List[RepairCase]) -> pd.DataFrame:
        """明細欄位右側空一欄後並列統計欄位"""
        summary = self.build_internal_control_summary(cases)
        separator = pd.DataFrame({'': [None] * max(len(df), len(summary))})
        return pd.concat(
            [df.reset_index(drop=True), separator, summary],
            axis=1
        )


def _split_vendors(row: Dict[str, Any]) -> Dict[str, Any]:
    """
    拆解請款廠商與維修廠商欄位

    - 請款廠商含「晟晁」時，其中的數字為收入傳票號碼
    - 非晟晁請款且未填維修廠商時，請款廠商即為維修廠商，費用等於收入
    - 維修廠商中的數字為費用傳票號碼
    """
    billing_vendor = DataCleaner.clean_text(row.get('請款廠商'))
    income_voucher = ''
    if IN_HOUSE_BILLING_VENDOR in billing_vendor:
        match = DIGITS_PATTERN.search(billing_vendor)
        if match:
            income_voucher = match.group(0)
            billing_vendor = IN_HOUSE_BILLING_VENDOR

    cost_vendor = DataCleaner.clean_text(row.get('維修廠商'))
    cost_amount = DataCleaner.to_number(row.get('費用金額'))
    income_amount = DataCleaner.to_number(row.get('收入金額(稅後)'))

    if IN_HOUSE_BILLING_VENDOR not in billing_vendor and not cost_vendor and billing_vendor:
        cost_vendor = billing_vendor
        cost_amount = income_amount

    cost_voucher = ''
    match = DIGITS_PATTERN.search(cost_vendor)
    if match:
        cost_voucher = match.group(0)
        cost_vendor = re.sub(r'\s+', ' ', cost_vendor.replace(cost_voucher, '', 1)).strip()

    return {
        'billing_vendor': billing_vendor,
        'income_voucher': income_voucher,
        'income_amount': income_amount,
        'cost_vendor': cost_vendor,
        'cost_voucher': cost_voucher,
        'cost_amount': cost_amount,
    }


def _legacy_satisfaction_level(row: Dict[str, Any]) -> str:
    """舊資料以欄位名稱表示分級，最後一個有值的欄位為準"""
    level = ''
    for column, mapped in AppConfig.LEGACY_SATISFACTION_COLUMNS.items():
        if not DataCleaner.is_blank(row.get(column)):
            level = mapped
    return level


def build_case_from_row(row: Dict[str, Any], created_by: str = 'system') -> RepairCase:
    """
    將一列歷史資料轉為案件

    Args:
        row: 標題已移除空白的列資料
        created_by: 匯入者

    Returns:
        RepairCase
    """
    text = DataCleaner.clean_text

    dates = {}
    notes = []
    for column, label in HISTORICAL_DATE_COLUMNS:
        value = row.get(column)
        if DataCleaner.is_blank(value):
            value = row.get(column.replace('JDM', ''))
        parsed, note = DateNormalizer.normalize(value)
        dates[column] = parsed
        if note:
            notes.append(f"{label}: {note}")

    vendors = _split_vendors(row)
    quote_title = text(row.get('報價單標題'))
    pre_tax_price = round_half_up(vendors['income_amount'] / INCOME_TAX_DIVISOR)

    if dates['結報日期']:
        status = CaseStatus.CLOSED
    elif dates['JDM提報日期']:
        status = CaseStatus.REPORTED
    else:
        status = CaseStatus.UNSET

    case = RepairCase.new()
    case.station = text(row.get('站點'))
    case.address = text(row.get('建物門牌地址'))
    case.tenant = text(row.get('承租人'))
    case.phone = text(row.get('聯絡電話'))
    case.repair_type = RepairType.OUT_OF_CONTRACT if '外' in text(row.get('契約內/外')) else RepairType.IN_CONTRACT
    case.quote_title = quote_title
    case.site_description = text(row.get('現場狀況'))
    case.total_amount = vendors['income_amount']
    case.is_sub_lease = any(SUB_LEASE_KEYWORD in text(row.get(column)) for column in SUB_LEASE_COLUMNS)
    case.set_satisfaction(_legacy_satisfaction_level(row))
    case.created_by = created_by

    jdm = case.jdm_control
    jdm.case_number = text(row.get('JDM系統案號'))
    jdm.report_date = dates['JDM提報日期']
    jdm.report_submit_date = dates['提報送件日期']
    jdm.approval_date = dates['奉核日']
    jdm.close_date = dates['結報日期']
    jdm.close_submit_date = dates['結報送件日期']
    jdm.status = status
    jdm.checklist = []
    jdm.remarks = '; '.join(notes)

    case.cost_items = [CostItem(
        contractor=vendors['cost_vendor'],
        work_description=quote_title,
        amount=vendors['cost_amount'],
        voucher_number=vendors['cost_voucher'],
        remarks=text(row.get('費用備註')),
    )]
    # 匯入的收入金額為實收數，不與報價連動
    case.income_items = [IncomeItem(
        source=vendors['billing_vendor'],
        receipt_number=text(row.get('收入發票號碼')),
        receive_date=dates['收入發票日期'],
        amount=vendors['income_amount'],
        voucher_number=vendors['income_voucher'],
        link_mode=IncomeLinkMode.MANUAL,
    )]
    case.repair_items = [RepairItem(name=quote_title, unit_price=pre_tax_price, quantity=1)]
    return case
