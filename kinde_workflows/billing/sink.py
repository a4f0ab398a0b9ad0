"""Metered-usage submission for the seat-usage reporter.

:class:`MeteringSink` is the append-only collaborator the reporter posts
to.  :class:`ManagementAPIMeteringSink` implements it against the
``billing/meter_usage`` endpoint.  Submissions are not deduplicated:
posting the same submission twice increments the meter twice.
"""

from __future__ import annotations

from typing import Protocol

from kinde_workflows.billing.models import MeterSubmission, SubmissionResult
from kinde_workflows.management.client import ManagementAPIClient, ManagementAPIError


class SubmissionError(Exception):
    """Raised when a meter usage submission is rejected or cannot be sent."""


class MeteringSink(Protocol):
    """Protocol for usage increments."""

    async def post(self, submission: MeterSubmission) -> SubmissionResult:
        """Submit a single usage increment."""
        ...


class ManagementAPIMeteringSink:
    """Posts usage increments through the Management API.

    Parameters
    ----------
    client:
        An authenticated :class:`ManagementAPIClient`.
    """

    def __init__(self, client: ManagementAPIClient) -> None:
        self._client = client

    async def post(self, submission: MeterSubmission) -> SubmissionResult:
        """Send ``POST /billing/meter_usage``.

        Raises
        ------
        SubmissionError
            On any HTTP or transport failure, or a malformed response body.
        """
        try:
            body = await self._client.post("billing/meter_usage", json=submission.to_params())
        except ManagementAPIError as exc:
            raise SubmissionError(
                f"Failed to submit meter usage for agreement {submission.agreement_id}: {exc}"
            ) from exc

        return SubmissionResult(agreement_id=submission.agreement_id, response=body)
