"""Data model for the seat-usage metering flow.

Every value here is request-scoped: built from the triggering event or a
Management API response, used for one decision, then discarded.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from kinde_workflows.config import DEFAULT_FEATURE_CODE


def _dig(data: Any, *keys: str) -> Any:
    """Follow *keys* through nested mappings, returning ``None`` on any gap."""
    for key in keys:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


class AuthEvent(BaseModel):
    """The subset of a post-authentication event the reporter reads."""

    model_config = ConfigDict(frozen=True)

    is_new_user_record_created: bool = False
    org_code: str | None = None
    user_id: str = ""

    @classmethod
    def from_workflow_event(cls, payload: dict[str, Any]) -> AuthEvent:
        """Extract the fields from a raw runtime event payload.

        Reads ``context.auth.isNewUserRecordCreated``,
        ``request.authUrlParams.orgCode`` and ``context.user.id``.  An
        empty org code is treated as absent.
        """
        org_code = _dig(payload, "request", "authUrlParams", "orgCode")
        user_id = _dig(payload, "context", "user", "id")
        return cls(
            is_new_user_record_created=_dig(payload, "context", "auth", "isNewUserRecordCreated") is True,
            org_code=org_code or None,
            user_id=user_id or "",
        )


class BillingAgreement(BaseModel):
    model_config = ConfigDict(frozen=True)

    plan_code: str
    agreement_id: str


class Organization(BaseModel):
    """An organization and its billing agreements, in directory order."""

    model_config = ConfigDict(frozen=True)

    code: str
    billing_agreements: tuple[BillingAgreement, ...] = ()

    @classmethod
    def from_api(cls, body: dict[str, Any], *, code: str | None = None) -> Organization:
        """Parse a ``GET /organization?expand=billing`` response body.

        A missing ``billing`` block or ``agreements`` list yields an
        organization with no agreements.
        """
        agreements = _dig(body, "billing", "agreements") or []
        return cls(
            code=body.get("code") or code or "",
            billing_agreements=tuple(
                BillingAgreement(plan_code=agr.get("plan_code") or "", agreement_id=agr.get("agreement_id") or "")
                for agr in agreements
            ),
        )

    def find_agreement(self, plan_code: str) -> BillingAgreement | None:
        """Return the first agreement on *plan_code*, or ``None``."""
        return next((agr for agr in self.billing_agreements if agr.plan_code == plan_code), None)


class MeterType(str, Enum):
    """How the meter interprets a submitted value."""

    DELTA = "delta"
    ABSOLUTE = "absolute"


class MeterSubmission(BaseModel):
    """One usage increment posted to the billing meter.

    Attributes
    ----------
    agreement_id:
        Customer agreement the usage is billed against.
    feature_code:
        Metered feature key configured on the plan.
    value:
        Amount, as a decimal string.
    type:
        ``delta`` adds to the running total; ``absolute`` replaces it.
    """

    model_config = ConfigDict(frozen=True)

    agreement_id: str
    feature_code: str = DEFAULT_FEATURE_CODE
    value: str = "1"
    type: MeterType = MeterType.DELTA

    def to_params(self) -> dict[str, str]:
        """Render the submission with the meter-usage endpoint's field names."""
        return {
            "customer_agreement_id": self.agreement_id,
            "billing_feature_code": self.feature_code,
            "meter_value": self.value,
            "meter_type_code": self.type.value,
        }


class SubmissionResult(BaseModel):
    """Acknowledgement returned by a metering sink."""

    model_config = ConfigDict(frozen=True)

    agreement_id: str
    response: dict[str, Any] = Field(default_factory=dict)


class OutcomeStatus(str, Enum):
    SKIPPED = "skipped"
    REPORTED = "reported"


class SkipReason(str, Enum):
    """Why no usage was submitted."""

    NO_ORG_CODE = "no_org_code"
    NOT_NEW_USER = "not_new_user"
    PLAN_NOT_MATCHED = "plan_not_matched"


class ReportOutcome(BaseModel):
    """Terminal result of one reporting decision.

    Failures are not represented here; they surface as
    :class:`~kinde_workflows.billing.directory.DirectoryError` or
    :class:`~kinde_workflows.billing.sink.SubmissionError`.
    """

    model_config = ConfigDict(frozen=True)

    status: OutcomeStatus
    reason: SkipReason | None = None
    agreement_id: str | None = None
    user_id: str | None = None

    @classmethod
    def skipped(cls, reason: SkipReason) -> ReportOutcome:
        return cls(status=OutcomeStatus.SKIPPED, reason=reason)

    @classmethod
    def reported(cls, agreement_id: str, user_id: str) -> ReportOutcome:
        return cls(status=OutcomeStatus.REPORTED, agreement_id=agreement_id, user_id=user_id)

    @property
    def is_reported(self) -> bool:
        return self.status == OutcomeStatus.REPORTED
