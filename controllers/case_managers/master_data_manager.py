#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
主檔查詢
門牌主檔（承租人）搜尋與價目表搜尋，以及由查詢結果建立報價項目
"""

from typing import Any, Dict, List, Optional

from config.settings import AppConfig
from models.case_model import RepairItem
from utils.data_cleaner import DataCleaner

SUB_LEASE_COLUMNS = ['備註', '欄1', '欄2']


def record_address(record: Dict[str, Any]) -> str:
    return DataCleaner.clean_text(record.get('建物門牌') or record.get('門牌'))


def record_tenant(record: Dict[str, Any]) -> str:
    return DataCleaner.clean_text(record.get('承租人') or record.get('姓名'))


def record_phone(record: Dict[str, Any]) -> str:
    return DataCleaner.clean_text(record.get('連絡電話') or record.get('聯絡電話'))


class MasterDataManager:
    """門牌與價目表查詢"""

    def search_addresses(self, records: List[Dict[str, Any]], keyword: str,
                         station: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        搜尋門牌主檔

        Args:
            records: 門牌紀錄
            keyword: 門牌或承租人關鍵字，空白時不回傳任何結果
            station: 只搜尋指定站別（工作表）

        Returns:
            List[Dict]: 依門牌排序，最多 50 筆
        """
        keyword = (keyword or '').strip()
        if not keyword or not records:
            return []

        matches = [
            record for record in records
            if (not station or record.get('sourceStation') == station)
            and (keyword in record_address(record) or keyword in record_tenant(record))
        ]
        matches.sort(key=record_address)
        return matches[:AppConfig.ADDRESS_RESULT_LIMIT]

    def search_prices(self, items: List[Dict[str, Any]], keyword: str) -> List[Dict[str, Any]]:
        """價目表搜尋：名稱或編號包含關鍵字"""
        keyword = (keyword or '').strip()
        if not keyword:
            return []
        return [
            item for item in items
            if keyword in DataCleaner.clean_text(item.get('name'))
            or keyword in DataCleaner.clean_text(item.get('id'))
        ]

    def address_to_case_fields(self, record: Dict[str, Any]) -> Dict[str, Any]:
        """選取門牌後帶入案件的欄位"""
        return {
            'station': DataCleaner.clean_text(record.get('sourceStation')),
            'address': record_address(record),
            'tenant': record_tenant(record),
            'phone': record_phone(record),
            'isSubLease': any('包租' in DataCleaner.clean_text(record.get(k)) for k in SUB_LEASE_COLUMNS),
        }

    @staticmethod
    def price_item_to_repair_item(item: Dict[str, Any]) -> RepairItem:
        """價目表項目 → 報價項目（僅能修改數量）"""
        return RepairItem(
            name=DataCleaner.clean_text(item.get('name')),
            unit_price=DataCleaner.to_number(item.get('price')),
            quantity=1,
            unit=DataCleaner.clean_text(item.get('unit')) or AppConfig.FORM_DEFAULTS['repair_unit'],
            is_manual=False,
        )

    @staticmethod
    def new_manual_item() -> RepairItem:
        """自訂報價項目（全部欄位可編輯）"""
        return RepairItem(name='', unit_price=0, quantity=1, is_manual=True)
