"""Post-authentication workflow: track organization seat usage.

Intended for seat-based B2B billing where organizations pay per active
user.  Runs after every authentication and increments the ``user``
metered feature when a brand-new user record joins an organization on
the per-user plan.

The M2M application behind ``KINDE_WF_M2M_CLIENT_ID`` /
``KINDE_WF_M2M_CLIENT_SECRET`` needs the ``read:organizations`` and
``create:meter_usage`` scopes.
"""

from __future__ import annotations

import logging
from typing import Any

from kinde_workflows.billing.directory import ManagementAPIDirectory
from kinde_workflows.billing.models import AuthEvent, ReportOutcome
from kinde_workflows.billing.reporter import SeatUsageReporter, event_skip_reason
from kinde_workflows.billing.sink import ManagementAPIMeteringSink
from kinde_workflows.config import Settings, load_settings
from kinde_workflows.management.client import ManagementAPIClient
from kinde_workflows.workflow import FailureAction, FailurePolicy, WorkflowSettings, WorkflowTrigger

logger = logging.getLogger(__name__)

TRACK_ORG_SEAT_USAGE_SETTINGS = WorkflowSettings(
    id="trackOrgSeatUsage",
    name="Track Organization Seat Usage",
    trigger=WorkflowTrigger.POST_AUTHENTICATION,
    failure_policy=FailurePolicy(action=FailureAction.STOP),
    bindings={
        "kinde.env": {},
        "kinde.fetch": {},
        "url": {},
    },
)


async def track_org_seat_usage(
    payload: dict[str, Any],
    *,
    settings: Settings | None = None,
    reporter: SeatUsageReporter | None = None,
) -> ReportOutcome:
    """Handle one post-authentication event.

    Parameters
    ----------
    payload:
        Raw event delivered by the runtime.
    settings:
        Workflow settings; loaded from the environment when omitted.
    reporter:
        Pre-built reporter.  When omitted, one backed by the Management
        API is created for this invocation and its HTTP client closed
        afterwards.

    Raises
    ------
    ConfigurationError
        If no reporter is given, the event needs an organization lookup
        and the Management API credentials are missing.
    DirectoryError, SubmissionError
        Propagated from the reporter so the failure policy applies.
    """
    event = AuthEvent.from_workflow_event(payload)

    if reporter is not None:
        return await reporter.report_if_needed(event)

    # Events that need no lookup never touch settings or credentials.
    reason = event_skip_reason(event)
    if reason is not None:
        logger.debug("Seat usage not reported (%s)", reason.value, extra={"workflow": {"reason": reason.value}})
        return ReportOutcome.skipped(reason)

    settings = settings or load_settings()

    async with ManagementAPIClient.from_settings(settings) as client:
        api_reporter = SeatUsageReporter(
            ManagementAPIDirectory(client),
            ManagementAPIMeteringSink(client),
            target_plan_code=settings.target_plan_code,
            feature_code=settings.billing_feature_code,
        )
        return await api_reporter.report_if_needed(event)
