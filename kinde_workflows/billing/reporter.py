"""Seat-usage reporting decision and submission.

:class:`SeatUsageReporter` decides, for one post-authentication event,
whether a new seat should be billed and if so posts a single ``delta``
increment of ``1`` against the organization's agreement for the target
plan.

A submission is made if and only if the user record is new, the event
carries an org code, and the organization has an agreement on the
target plan.  The reporter issues at most one directory read and one
meter write per call and never retries; collaborator errors propagate
to the caller untouched.
"""

from __future__ import annotations

import logging

from kinde_workflows.billing.directory import OrganizationDirectory
from kinde_workflows.billing.models import (
    AuthEvent,
    MeterSubmission,
    MeterType,
    ReportOutcome,
    SkipReason,
)
from kinde_workflows.billing.sink import MeteringSink
from kinde_workflows.config import DEFAULT_FEATURE_CODE, DEFAULT_PLAN_CODE

logger = logging.getLogger(__name__)

_BILLING_EXPANSION = frozenset({"billing"})


def event_skip_reason(event: AuthEvent) -> SkipReason | None:
    """Return why *event* can be skipped without any lookup, or ``None``."""
    if not event.org_code:
        return SkipReason.NO_ORG_CODE
    if not event.is_new_user_record_created:
        return SkipReason.NOT_NEW_USER
    return None


class SeatUsageReporter:
    """Reports one seat per newly created user to the billing meter.

    Holds no per-event state, so a single instance can serve concurrent
    invocations.

    Parameters
    ----------
    directory:
        Source of organization and billing agreement data.
    sink:
        Destination for usage increments.
    target_plan_code:
        Plan whose agreement is billed.  Organizations on other plans are
        skipped.
    feature_code:
        Metered feature key on that plan.
    """

    def __init__(
        self,
        directory: OrganizationDirectory,
        sink: MeteringSink,
        *,
        target_plan_code: str = DEFAULT_PLAN_CODE,
        feature_code: str = DEFAULT_FEATURE_CODE,
    ) -> None:
        self._directory = directory
        self._sink = sink
        self._target_plan_code = target_plan_code
        self._feature_code = feature_code

    @property
    def target_plan_code(self) -> str:
        return self._target_plan_code

    @property
    def feature_code(self) -> str:
        return self._feature_code

    async def report_if_needed(self, event: AuthEvent) -> ReportOutcome:
        """Submit a seat increment for *event* when it represents a new billable seat.

        Parameters
        ----------
        event:
            The authentication event.

        Returns
        -------
        ReportOutcome
            ``reported`` with the agreement and user IDs, or ``skipped``
            with the reason.

        Raises
        ------
        DirectoryError
            If the organization lookup fails.
        SubmissionError
            If the meter rejects the submission.
        """
        reason = event_skip_reason(event)
        if reason is not None:
            return self._skip(reason, event)
        assert event.org_code is not None

        organization = await self._directory.get(event.org_code, expand=_BILLING_EXPANSION)

        agreement = organization.find_agreement(self._target_plan_code)
        if agreement is None:
            return self._skip(SkipReason.PLAN_NOT_MATCHED, event)

        submission = MeterSubmission(
            agreement_id=agreement.agreement_id,
            feature_code=self._feature_code,
            value="1",
            type=MeterType.DELTA,
        )
        await self._sink.post(submission)

        logger.info(
            "Seat usage reported for organization %s",
            event.org_code,
            extra={
                "workflow": {
                    "org_code": event.org_code,
                    "user_id": event.user_id,
                    "agreement_id": agreement.agreement_id,
                    "feature_code": self._feature_code,
                }
            },
        )
        return ReportOutcome.reported(agreement.agreement_id, event.user_id)

    def _skip(self, reason: SkipReason, event: AuthEvent) -> ReportOutcome:
        # Plan mismatches are worth an INFO line; the other skips happen on
        # almost every sign-in.
        level = logging.INFO if reason == SkipReason.PLAN_NOT_MATCHED else logging.DEBUG
        logger.log(
            level,
            "Seat usage not reported (%s)",
            reason.value,
            extra={
                "workflow": {
                    "org_code": event.org_code,
                    "reason": reason.value,
                    "plan_code": self._target_plan_code,
                }
            },
        )
        return ReportOutcome.skipped(reason)
