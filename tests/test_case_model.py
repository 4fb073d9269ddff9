# -*- coding: utf-8 -*-
import pytest

from models.case_model import CaseStatus, IncomeLinkMode, RepairCase, RepairType


@pytest.mark.parametrize("value, expected", [
    (RepairType.OUT_OF_CONTRACT, RepairType.OUT_OF_CONTRACT),
    (RepairType.IN_CONTRACT, RepairType.IN_CONTRACT),
    ("2.2", RepairType.OUT_OF_CONTRACT),
    (" 2.1 ", RepairType.IN_CONTRACT),
    ("9.9", RepairType.IN_CONTRACT),
])
def test_repair_type_parse(value, expected):
    assert RepairType.parse(value) is expected


@pytest.mark.parametrize("value, expected", [
    (CaseStatus.REPORTED, CaseStatus.REPORTED),
    (CaseStatus.CLOSED, CaseStatus.CLOSED),
    (CaseStatus.REPLACED, CaseStatus.REPLACED),
    (CaseStatus.REJECTED, CaseStatus.REJECTED),
    (CaseStatus.UNSET, CaseStatus.UNSET),
    ("結報", CaseStatus.CLOSED),
    (None, CaseStatus.UNSET),
    ("完成", CaseStatus.UNSET),
])
def test_case_status_parse(value, expected):
    assert CaseStatus.parse(value) is expected


def test_document_roundtrip_keeps_enum_fields():
    case = RepairCase.from_dict({
        "repairType": "2.2",
        "incomeItems": [{"linkMode": "manual", "incomeAmount": 500}],
        "jdmControl": {"status": "退件", "checklist": ["invoice", "unknown"]},
        "satisfactionLevel": "滿意",
    })
    restored = RepairCase.from_dict(case.to_dict())

    assert restored.repair_type is RepairType.OUT_OF_CONTRACT
    assert restored.status is CaseStatus.REJECTED
    assert restored.income_items[0].link_mode is IncomeLinkMode.MANUAL
    assert restored.jdm_control.checklist == ["invoice"]
    assert restored.satisfaction_score == 75
    assert restored.to_dict() == case.to_dict()
