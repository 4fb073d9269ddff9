# -*- coding: utf-8 -*-
"""
測試共用 fixtures：記憶體 SQLite、控制器、API client、試算表產生器
"""

from io import BytesIO

import pytest
from fastapi.testclient import TestClient
from openpyxl import Workbook
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from api.database import Database
from api.main import create_app
from config.settings import BackendConfig
from controllers.case_controller import CaseController
from controllers.case_managers.case_data_manager import CaseDataManager
from controllers.login_controller import IdentityProvider
from models.case_model import RepairCase, RepairItem

TEST_APP_ID = "test-app"


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


class FakeSession:
    """requests.Session 替身：記錄請求並回傳預設回應或拋出例外"""

    def __init__(self, response=None, error=None):
        self.headers = {}
        self.response = response or FakeResponse(200, {"localId": "uid-1", "email": "a@b.c", "idToken": "tok"})
        self.error = error
        self.calls = []

    def post(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def database():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    db = Database(engine)
    db.create_all()
    yield db
    engine.dispose()


@pytest.fixture
def data_manager(database):
    return CaseDataManager(database, TEST_APP_ID)


@pytest.fixture
def controller(data_manager):
    return CaseController(data_manager, watch_interval=0.01)


@pytest.fixture
def backend_config():
    return BackendConfig(database_url="sqlite://", auth_api_key="test-key", app_id=TEST_APP_ID)


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def client(backend_config, database, fake_session):
    provider = IdentityProvider(api_key="test-key", endpoint="https://auth.test/signIn", session=fake_session)
    app = create_app(backend_config, database=database, identity_provider=provider)
    with TestClient(app) as test_client:
        yield test_client


def build_workbook(sheets):
    """
    建立 xlsx 內容

    Args:
        sheets: {工作表名稱: 列資料}，依插入順序建立
    """
    wb = Workbook()
    wb.remove(wb.active)
    for name, rows in sheets.items():
        ws = wb.create_sheet(title=name)
        for row in rows:
            ws.append(list(row))
    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def make_case(**overrides):
    """建立測試案件；jdm 欄位以 jdm_ 前綴指定"""
    case = RepairCase.new()
    case.station = overrides.pop("station", "台北車站")
    case.address = overrides.pop("address", "台北市中正區忠孝西路1段49號")
    case.tenant = overrides.pop("tenant", "王小明")
    items = overrides.pop("items", None)
    if items:
        case.repair_items = [RepairItem(name=name, unit_price=price, quantity=qty) for name, price, qty in items]
    for key in list(overrides):
        if key.startswith("jdm_"):
            setattr(case.jdm_control, key[4:], overrides.pop(key))
    for key, value in overrides.items():
        setattr(case, key, value)
    return case
