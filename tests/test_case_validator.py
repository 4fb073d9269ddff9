# -*- coding: utf-8 -*-
import pytest

from controllers.case_managers.case_validator import (
    CaseValidator, collect_jdm_errors, field_error_flags, has_field_error
)
from models.case_model import CaseStatus, JdmControl, RepairCase, RepairType
from tests.conftest import make_case


def jdm(**kwargs):
    return JdmControl(**kwargs)


def test_empty_control_has_no_errors():
    assert collect_jdm_errors(jdm(), RepairType.IN_CONTRACT) == []


def test_submit_date_before_report_date():
    errors = collect_jdm_errors(jdm(report_date="2024-03-10", report_submit_date="2024-03-05"), "2.2")
    assert errors == ["送件日應晚於或等於提報日"]


def test_approval_must_be_strictly_after_submit():
    errors = collect_jdm_errors(jdm(report_submit_date="2024-03-05", approval_date="2024-03-05"), "2.2")
    assert errors == ["奉核日應晚於送件日"]


def test_same_day_is_allowed_for_non_strict_pairs():
    control = jdm(report_date="2024-03-05", report_submit_date="2024-03-05")
    assert collect_jdm_errors(control, "2.2") == []


def test_in_contract_close_may_precede_report_submit():
    control = jdm(report_submit_date="2024-03-10", close_date="2024-03-01")
    assert collect_jdm_errors(control, RepairType.IN_CONTRACT) == []
    assert "結報日應晚於或等於送件日" in collect_jdm_errors(control, RepairType.OUT_OF_CONTRACT)


def test_reported_status_requirements():
    control = jdm(status=CaseStatus.REPORTED, close_date="2024-04-01")
    errors = collect_jdm_errors(control, "2.2")
    assert "狀態為提報時，提報日必填" in errors
    assert "狀態為提報時，送件日必填" in errors
    assert "案件狀態為提報時，不可填寫結報日期與送件日" in errors
    assert "狀態為提報時，JDM 系統案號必填" in errors


def test_closed_status_requirements():
    control = jdm(status=CaseStatus.CLOSED, case_number="J-1", report_date="2024-03-01",
                  report_submit_date="2024-03-02")
    errors = collect_jdm_errors(control, "2.2")
    assert errors == ["狀態為結報時，結報日必填", "狀態為結報時，送件日必填"]


def test_in_contract_submit_dates_must_match():
    control = jdm(report_date="2024-03-01", report_submit_date="2024-03-05",
                  close_date="2024-03-06", close_submit_date="2024-03-08")
    assert collect_jdm_errors(control, "2.1") == ["契約內案件：送件日須為同一天"]
    assert collect_jdm_errors(control, "2.2") == []


def test_messages_are_deduplicated():
    # 兩組不同的「送件日」比較可能產生相同訊息
    control = jdm(report_date="2024-03-10", report_submit_date="2024-03-01", close_submit_date="2024-03-02")
    errors = collect_jdm_errors(control, "2.2")
    assert len(errors) == len(set(errors))


def test_field_flags_agree_with_violations():
    control = jdm(report_date="2024-03-10", report_submit_date="2024-03-05")
    assert has_field_error("reportDate", control, "2.2")
    assert has_field_error("reportSubmitDate", control, "2.2")
    assert not has_field_error("approvalDate", control, "2.2")


def test_case_number_flag_only_for_reported_or_closed():
    assert has_field_error("caseNumber", jdm(status=CaseStatus.REPORTED), "2.1")
    assert not has_field_error("caseNumber", jdm(status=CaseStatus.REPLACED), "2.1")


def test_field_flags_cover_all_fields():
    flags = field_error_flags(jdm(), "2.1")
    assert set(flags) == {"reportDate", "reportSubmitDate", "approvalDate", "closeDate",
                          "closeSubmitDate", "caseNumber"}
    assert not any(flags.values())


def test_unknown_field_is_rejected():
    with pytest.raises(ValueError):
        has_field_error("foo", jdm(), "2.1")


class TestSavePreconditions:

    def setup_method(self):
        self.validator = CaseValidator()

    def test_replaced_requires_remarks(self):
        case = make_case(jdm_status=CaseStatus.REPLACED)
        ok, message = self.validator.check_save_preconditions(case)
        assert not ok
        assert message == "狀態為「抽換」時，必須填寫案件備註以記錄原因。"

    def test_reported_requires_case_number(self):
        case = make_case(jdm_status=CaseStatus.REPORTED, jdm_report_date="2024-03-01",
                         jdm_report_submit_date="2024-03-01")
        ok, message = self.validator.check_save_preconditions(case)
        assert not ok
        assert "JDM 系統案號必填" in message

    def test_violations_require_remarks(self):
        case = make_case(jdm_report_date="2024-03-10", jdm_report_submit_date="2024-03-05")
        ok, message = self.validator.check_save_preconditions(case)
        assert not ok
        assert message.startswith("送件日應晚於或等於提報日")

        case.jdm_control.remarks = "廠商晚送件"
        assert self.validator.check_save_preconditions(case) == (True, "驗證通過")

    def test_clean_case_passes(self):
        assert self.validator.check_save_preconditions(make_case())[0]


def test_exempt_pair_is_not_flagged_for_in_contract():
    control = jdm(report_submit_date="2024-03-10", close_date="2024-03-01")

    assert not has_field_error("reportSubmitDate", control, RepairType.IN_CONTRACT)
    assert not has_field_error("closeDate", control, RepairType.IN_CONTRACT)
    assert has_field_error("reportSubmitDate", control, RepairType.OUT_OF_CONTRACT)
    assert has_field_error("closeDate", control, RepairType.OUT_OF_CONTRACT)


def test_hydrated_case_uses_its_repair_type():
    document = {
        "repairType": "2.2",
        "jdmControl": {
            "reportSubmitDate": "2024-03-10",
            "closeDate": "2024-03-01",
            "closeSubmitDate": "2024-03-12",
        },
    }
    out_of_contract = RepairCase.from_dict(document)
    errors = CaseValidator().validate_jdm(out_of_contract)
    assert errors == ["結報日應晚於或等於送件日"]
    assert not any("同一天" in e for e in errors)

    in_contract = RepairCase.from_dict({**document, "repairType": "2.1"})
    errors = CaseValidator().validate_jdm(in_contract)
    assert errors == ["契約內案件：送件日須為同一天"]


def test_validation_is_idempotent():
    case = make_case(jdm_status=CaseStatus.CLOSED, jdm_report_date="2024-03-10",
                     jdm_report_submit_date="2024-03-05")
    before = case.to_dict()
    first = (collect_jdm_errors(case.jdm_control, case.repair_type),
             field_error_flags(case.jdm_control, case.repair_type))
    second = (collect_jdm_errors(case.jdm_control, case.repair_type),
              field_error_flags(case.jdm_control, case.repair_type))
    assert first == second
    assert case.to_dict() == before
