# -*- coding: utf-8 -*-
import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from controllers.case_managers.case_data_manager import CaseDataManager
from controllers.errors import CaseNotFoundError, StationFilterLimitError
from models.case_model import CaseStatus
from tests.conftest import make_case


def test_save_assigns_id_and_timestamp(data_manager):
    case = make_case(items=[("更換門鎖", 1000, 1)])
    saved = data_manager.save_case(case)

    assert saved.id
    assert saved.updated_at is not None

    loaded = data_manager.get_case(saved.id)
    assert loaded.station == "台北車站"
    assert loaded.repair_items[0].name == "更換門鎖"
    assert loaded.repair_items[0].unit_price == 1000


def test_update_overwrites_existing_case(data_manager):
    saved = data_manager.save_case(make_case())
    saved.tenant = "陳大華"
    data_manager.save_case(saved)

    assert data_manager.get_case(saved.id).tenant == "陳大華"
    assert len(data_manager.query_cases()) == 1


def test_update_of_deleted_case_fails(data_manager):
    saved = data_manager.save_case(make_case())
    data_manager.delete_case(saved.id)

    with pytest.raises(CaseNotFoundError):
        data_manager.save_case(saved)
    with pytest.raises(CaseNotFoundError):
        data_manager.get_case(saved.id)
    with pytest.raises(CaseNotFoundError):
        data_manager.delete_case(saved.id)


def test_cases_are_scoped_by_app_id(database, data_manager):
    data_manager.save_case(make_case())
    other = CaseDataManager(database, "other-app")
    assert other.query_cases() == []


def test_query_by_status(data_manager):
    data_manager.save_case(make_case())
    data_manager.save_case(make_case(jdm_status=CaseStatus.REPORTED, jdm_case_number="J-1"))
    data_manager.save_case(make_case(jdm_status=CaseStatus.CLOSED, jdm_case_number="J-2"))

    assert len(data_manager.query_cases("全部")) == 3
    assert [c.status for c in data_manager.query_cases("待提報")] == [CaseStatus.UNSET]
    assert [c.status for c in data_manager.query_cases("結報")] == [CaseStatus.CLOSED]
    open_cases = data_manager.query_cases("未完成案件 (全部)")
    assert {c.status for c in open_cases} == {CaseStatus.UNSET, CaseStatus.REPORTED}


def test_query_by_station(data_manager):
    data_manager.save_case(make_case(station="台北車站"))
    data_manager.save_case(make_case(station="板橋站"))

    cases = data_manager.query_cases(stations=["板橋站"])
    assert [c.station for c in cases] == ["板橋站"]


def test_station_filter_limit(data_manager):
    with pytest.raises(StationFilterLimitError):
        data_manager.query_cases(stations=[f"站{i}" for i in range(11)])


def test_bulk_insert_in_batches(data_manager):
    cases = [make_case(station=f"站{i}") for i in range(5)]
    assert data_manager.bulk_insert(cases, batch_size=2) == 5
    assert len(data_manager.query_cases()) == 5
    assert all(case.id for case in cases)


def test_fingerprint_changes_on_update(data_manager):
    empty = data_manager.fingerprint()
    assert empty[0] == 0

    saved = data_manager.save_case(make_case())
    after_insert = data_manager.fingerprint()
    assert after_insert != empty

    saved.tenant = "陳大華"
    data_manager.save_case(saved)
    assert data_manager.fingerprint() != after_insert


def test_fingerprint_changes_on_delete_then_insert(data_manager):
    first = data_manager.save_case(make_case(tenant="王小明"))
    before = data_manager.fingerprint()

    data_manager.delete_case(first.id)
    data_manager.save_case(make_case(tenant="陳大華"))
    after = data_manager.fingerprint()

    assert after[0] == before[0]
    assert after[3] == before[3] + 2
    assert after != before


def fail_first_commit(monkeypatch):
    original = Session.commit
    calls = []

    def flaky_commit(session):
        calls.append(session)
        if len(calls) == 1:
            raise OperationalError("COMMIT", {}, Exception("db down"))
        return original(session)

    monkeypatch.setattr(Session, "commit", flaky_commit)
    return calls


def test_failed_insert_leaves_case_without_id(data_manager, monkeypatch):
    fail_first_commit(monkeypatch)
    case = make_case()

    with pytest.raises(OperationalError):
        data_manager.save_case(case)
    assert case.id is None
    assert data_manager.query_cases() == []

    data_manager.save_case(case)
    assert case.id
    assert len(data_manager.query_cases()) == 1
    assert data_manager.get_case(case.id).tenant == case.tenant


def test_failed_bulk_batch_keeps_cases_without_id(data_manager, monkeypatch):
    fail_first_commit(monkeypatch)
    cases = [make_case(station=f"站{i}") for i in range(3)]

    with pytest.raises(OperationalError):
        data_manager.bulk_insert(cases, batch_size=2)
    assert all(case.id is None for case in cases)

    assert data_manager.bulk_insert(cases, batch_size=2) == 3
    assert len(data_manager.query_cases()) == 3


def test_address_master_is_chunked(data_manager, monkeypatch):
    monkeypatch.setattr("config.settings.AppConfig.CHUNK_SIZE", 2)
    records = [{"sourceStation": "台北車站", "門牌": f"{i}號"} for i in range(5)]

    assert data_manager.save_address_master(records, ["台北車站"]) == 3
    loaded, sheets = data_manager.load_address_master()
    assert loaded == records
    assert sheets == ["台北車站"]

    # 重新匯入較少的資料時，舊分段不會殘留
    assert data_manager.save_address_master(records[:1], ["台北車站"]) == 1
    loaded, _ = data_manager.load_address_master()
    assert loaded == records[:1]


def test_empty_master_data(data_manager):
    assert data_manager.load_address_master() == ([], [])
    assert data_manager.load_price_master() == []


def test_price_master_roundtrip(data_manager):
    items = [{"id": "P-01", "name": "更換門鎖", "unit": "式", "price": 1200}]
    data_manager.save_price_master(items)
    data_manager.save_price_master(items + [{"id": "P-02", "name": "更換燈管", "unit": "式", "price": 450}])
    assert [item["id"] for item in data_manager.load_price_master()] == ["P-01", "P-02"]
