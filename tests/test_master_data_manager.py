# -*- coding: utf-8 -*-
import pytest

from controllers.case_managers.master_data_manager import MasterDataManager

RECORDS = [
    {"sourceStation": "台北車站", "門牌": "忠孝西路1段50號", "承租人": "陳大華", "聯絡電話": "02-2222"},
    {"sourceStation": "台北車站", "門牌": "忠孝西路1段49號", "承租人": "王小明", "備註": "包租"},
    {"sourceStation": "板橋站", "建物門牌": "縣民大道2段7號", "承租人": "王大同"},
]

PRICES = [
    {"id": "P-01", "name": "更換門鎖", "unit": "組", "price": 1200},
    {"id": "P-02", "name": "更換燈管", "unit": "式", "price": 450},
]


@pytest.fixture
def manager():
    return MasterDataManager()


def test_search_requires_keyword(manager):
    assert manager.search_addresses(RECORDS, "  ") == []


def test_search_by_address_sorted(manager):
    result = manager.search_addresses(RECORDS, "忠孝西路")
    assert [r["門牌"] for r in result] == ["忠孝西路1段49號", "忠孝西路1段50號"]


def test_search_by_tenant_and_station(manager):
    assert len(manager.search_addresses(RECORDS, "王")) == 2
    result = manager.search_addresses(RECORDS, "王", station="板橋站")
    assert [r["建物門牌"] for r in result] == ["縣民大道2段7號"]


def test_search_result_limit(manager):
    records = [{"sourceStation": "台北車站", "門牌": f"{i:03d}號"} for i in range(80)]
    assert len(manager.search_addresses(records, "號")) == 50


def test_address_to_case_fields(manager):
    fields = manager.address_to_case_fields(RECORDS[1])
    assert fields == {
        "station": "台北車站",
        "address": "忠孝西路1段49號",
        "tenant": "王小明",
        "phone": "",
        "isSubLease": True,
    }
    assert manager.address_to_case_fields(RECORDS[0])["phone"] == "02-2222"


def test_search_prices(manager):
    assert [p["id"] for p in manager.search_prices(PRICES, "燈")] == ["P-02"]
    assert [p["id"] for p in manager.search_prices(PRICES, "P-01")] == ["P-01"]
    assert manager.search_prices(PRICES, "") == []


def test_price_item_is_quantity_only(manager):
    item = manager.price_item_to_repair_item(PRICES[0])
    assert item.name == "更換門鎖"
    assert item.unit_price == 1200
    assert item.quantity == 1
    assert item.unit == "組"
    assert not item.is_manual
    assert manager.new_manual_item().is_manual
