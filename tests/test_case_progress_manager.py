# -*- coding: utf-8 -*-
import pytest

from controllers.case_managers.case_progress_manager import CaseProgressManager
from models.case_model import CaseStatus, RepairCase
from tests.conftest import make_case


@pytest.fixture
def manager():
    return CaseProgressManager()


def test_reported_requires_confirmation(manager):
    case = make_case()
    request = manager.request_status_change(case, "提報")
    assert request.target == CaseStatus.REPORTED
    assert request.requires_confirmation
    assert "維修前照片" in request.message
    # 確認前不變更
    assert case.status == CaseStatus.UNSET


def test_replaced_applies_immediately(manager):
    case = make_case(jdm_checklist=["photoBefore"])
    request = manager.click_status(case, "抽換")
    assert not request.requires_confirmation
    assert case.status == CaseStatus.REPLACED
    assert case.jdm_control.checklist == ["photoBefore"]


def test_clicking_current_status_cancels(manager):
    case = make_case(jdm_status=CaseStatus.REJECTED)
    request = manager.click_status(case, "退件")
    assert request.target == CaseStatus.UNSET
    assert case.status == CaseStatus.UNSET


def test_reported_removes_photo_and_quotation(manager):
    case = make_case(jdm_checklist=["photoBefore", "quotation", "invoice"])
    manager.apply_status_change(case, CaseStatus.REPORTED)
    assert case.status == CaseStatus.REPORTED
    assert case.jdm_control.checklist == ["invoice"]


def test_closed_clears_checklist(manager):
    case = make_case(jdm_checklist=["invoice", "warranty"])
    manager.apply_status_change(case, "結報")
    assert case.jdm_control.checklist == []


def test_toggle_checklist_item(manager):
    case = make_case()
    manager.toggle_checklist_item(case, "warranty")
    assert case.jdm_control.checklist == ["warranty"]
    manager.toggle_checklist_item(case, "warranty")
    assert case.jdm_control.checklist == []

    with pytest.raises(ValueError):
        manager.toggle_checklist_item(case, "unknown")


@pytest.mark.parametrize("target", list(CaseStatus))
def test_apply_accepts_status_members(manager, target):
    case = RepairCase.from_dict({"jdmControl": {"status": "抽換", "checklist": ["invoice"]}})
    manager.apply_status_change(case, target)
    assert case.status is target


def test_confirmed_request_target_is_applied(manager):
    case = make_case(jdm_checklist=["photoBefore", "warranty"])
    request = manager.click_status(case, "提報")
    assert case.status == CaseStatus.UNSET

    manager.apply_status_change(case, request.target)
    assert case.status is CaseStatus.REPORTED
    assert case.jdm_control.checklist == ["warranty"]
