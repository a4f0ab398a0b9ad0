"""Tests for kinde_workflows.billing.models."""

from __future__ import annotations

import pydantic
import pytest

from kinde_workflows.billing.models import (
    AuthEvent,
    BillingAgreement,
    MeterSubmission,
    MeterType,
    Organization,
    OutcomeStatus,
    ReportOutcome,
    SkipReason,
)

# ---------------------------------------------------------------------------
# AuthEvent
# ---------------------------------------------------------------------------


class TestAuthEventFromWorkflowEvent:
    def test_reads_nested_fields(self, auth_payload) -> None:
        event = AuthEvent.from_workflow_event(auth_payload(is_new_user=True, org_code="org_9", user_id="kp_9"))
        assert event.is_new_user_record_created is True
        assert event.org_code == "org_9"
        assert event.user_id == "kp_9"

    def test_missing_org_code(self, auth_payload) -> None:
        event = AuthEvent.from_workflow_event(auth_payload(org_code=None))
        assert event.org_code is None

    def test_empty_org_code_is_absent(self, auth_payload) -> None:
        event = AuthEvent.from_workflow_event(auth_payload(org_code=""))
        assert event.org_code is None

    def test_empty_payload_defaults(self) -> None:
        event = AuthEvent.from_workflow_event({})
        assert event == AuthEvent(is_new_user_record_created=False, org_code=None, user_id="")

    def test_truthy_non_bool_flag_is_not_new(self) -> None:
        payload = {"context": {"auth": {"isNewUserRecordCreated": "yes"}}}
        assert AuthEvent.from_workflow_event(payload).is_new_user_record_created is False

    def test_null_intermediate_blocks(self) -> None:
        payload = {"request": None, "context": {"auth": None, "user": None}}
        event = AuthEvent.from_workflow_event(payload)
        assert event.org_code is None
        assert event.is_new_user_record_created is False

    def test_is_frozen(self) -> None:
        event = AuthEvent(org_code="org_1")
        with pytest.raises(pydantic.ValidationError):
            event.org_code = "org_2"  # type: ignore[misc]


# ---------------------------------------------------------------------------
# Organization
# ---------------------------------------------------------------------------


class TestOrganization:
    def test_from_api_parses_agreements_in_order(self) -> None:
        body = {
            "code": "org_1",
            "name": "Acme",
            "billing": {
                "billing_customer_id": "cus_1",
                "agreements": [
                    {"plan_code": "other", "agreement_id": "a1"},
                    {"plan_code": "standard-organization-plan", "agreement_id": "a2"},
                ],
            },
        }
        org = Organization.from_api(body)
        assert org.code == "org_1"
        assert [a.agreement_id for a in org.billing_agreements] == ["a1", "a2"]

    def test_from_api_without_billing(self) -> None:
        org = Organization.from_api({"code": "org_1"})
        assert org.billing_agreements == ()

    def test_from_api_null_agreements(self) -> None:
        org = Organization.from_api({"code": "org_1", "billing": {"agreements": None}})
        assert org.billing_agreements == ()

    def test_from_api_falls_back_to_requested_code(self) -> None:
        org = Organization.from_api({}, code="org_requested")
        assert org.code == "org_requested"

    def test_find_agreement_first_match(self) -> None:
        org = Organization(
            code="org_1",
            billing_agreements=(
                BillingAgreement(plan_code="p", agreement_id="x"),
                BillingAgreement(plan_code="p", agreement_id="y"),
            ),
        )
        assert org.find_agreement("p") == BillingAgreement(plan_code="p", agreement_id="x")

    def test_find_agreement_none(self) -> None:
        org = Organization(code="org_1")
        assert org.find_agreement("p") is None


# ---------------------------------------------------------------------------
# MeterSubmission
# ---------------------------------------------------------------------------


class TestMeterSubmission:
    def test_defaults(self) -> None:
        submission = MeterSubmission(agreement_id="a1")
        assert submission.feature_code == "user"
        assert submission.value == "1"
        assert submission.type == MeterType.DELTA

    def test_to_params_uses_wire_names(self) -> None:
        submission = MeterSubmission(agreement_id="a2")
        assert submission.to_params() == {
            "customer_agreement_id": "a2",
            "billing_feature_code": "user",
            "meter_value": "1",
            "meter_type_code": "delta",
        }

    def test_absolute_type_value(self) -> None:
        assert MeterSubmission(agreement_id="a", type=MeterType.ABSOLUTE).to_params()["meter_type_code"] == "absolute"


# ---------------------------------------------------------------------------
# ReportOutcome
# ---------------------------------------------------------------------------


class TestReportOutcome:
    def test_skipped(self) -> None:
        outcome = ReportOutcome.skipped(SkipReason.NOT_NEW_USER)
        assert outcome.status == OutcomeStatus.SKIPPED
        assert outcome.reason == SkipReason.NOT_NEW_USER
        assert outcome.agreement_id is None
        assert outcome.is_reported is False

    def test_reported(self) -> None:
        outcome = ReportOutcome.reported("a2", "kp_1")
        assert outcome.status == OutcomeStatus.REPORTED
        assert outcome.reason is None
        assert outcome.agreement_id == "a2"
        assert outcome.user_id == "kp_1"
        assert outcome.is_reported is True

    def test_serializes_enum_values(self) -> None:
        data = ReportOutcome.skipped(SkipReason.PLAN_NOT_MATCHED).model_dump(mode="json")
        assert data["status"] == "skipped"
        assert data["reason"] == "plan_not_matched"
