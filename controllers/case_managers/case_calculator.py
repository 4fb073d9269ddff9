#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
案件金額計算器
報價總額（小計、服務費、稅金）與費用/收入收支統計
"""

import math
from dataclasses import dataclass
from typing import Iterable, Tuple

from config.settings import AppConfig
from models.case_model import (
    CostItem, IncomeItem, IncomeLinkMode, RepairCase, RepairItem, RepairType
)
from utils.data_cleaner import DataCleaner, Number


def round_half_up(value: float) -> int:
    """四捨五入到整數（.5 一律進位）"""
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class QuoteSummary:
    subtotal: Number
    service_fee: int
    tax: int
    total: Number

    def to_dict(self):
        return {
            'subtotal': self.subtotal,
            'serviceFee': self.service_fee,
            'tax': self.tax,
            'total': self.total,
        }


@dataclass(frozen=True)
class FinancialSummary:
    total_costs: Number
    total_income: Number
    net_profit: Number

    def to_dict(self):
        return {
            'totalCosts': self.total_costs,
            'totalIncome': self.total_income,
            'netProfit': self.net_profit,
        }


def calculate_quote(repair_items: Iterable[RepairItem], repair_type) -> QuoteSummary:
    """
    計算報價總額

    Args:
        repair_items: 報價項目
        repair_type: 契約類型，契約內加收 5% 服務費

    Returns:
        QuoteSummary
    """
    subtotal = sum(
        DataCleaner.to_number(item.unit_price) * DataCleaner.to_number(item.quantity)
        for item in repair_items
    )
    if RepairType.parse(repair_type) == RepairType.IN_CONTRACT:
        service_fee = round_half_up(subtotal * AppConfig.SERVICE_FEE_RATE)
    else:
        service_fee = 0
    tax = round_half_up((subtotal + service_fee) * AppConfig.TAX_RATE)
    return QuoteSummary(
        subtotal=subtotal,
        service_fee=service_fee,
        tax=tax,
        total=subtotal + service_fee + tax,
    )


def aggregate_financials(cost_items: Iterable[CostItem], income_items: Iterable[IncomeItem]) -> FinancialSummary:
    """費用合計、收入合計與淨利"""
    total_costs = sum(DataCleaner.to_number(item.amount) for item in cost_items)
    total_income = sum(DataCleaner.to_number(item.amount) for item in income_items)
    return FinancialSummary(
        total_costs=total_costs,
        total_income=total_income,
        net_profit=total_income - total_costs,
    )


def sync_linked_income(case: RepairCase, quote: QuoteSummary) -> bool:
    """
    第一筆收入為連動模式時，寫入報價金額

    Returns:
        bool: 是否有寫入
    """
    if not case.income_items:
        return False
    first = case.income_items[0]
    if first.link_mode != IncomeLinkMode.LINKED:
        return False
    first.subtotal = quote.subtotal
    first.service_fee = quote.service_fee
    first.tax = quote.tax
    first.amount = quote.total
    return True


def recompute_case(case: RepairCase) -> Tuple[QuoteSummary, FinancialSummary]:
    """每次修改案件後重新計算：先同步連動收入，再統計收支"""
    quote = calculate_quote(case.repair_items, case.repair_type)
    sync_linked_income(case, quote)
    financials = aggregate_financials(case.cost_items, case.income_items)
    return quote, financials
