"""Seat-based billing: report new organization members to a usage meter."""

from kinde_workflows.billing.directory import DirectoryError, OrganizationDirectory
from kinde_workflows.billing.models import (
    AuthEvent,
    BillingAgreement,
    MeterSubmission,
    MeterType,
    Organization,
    ReportOutcome,
    SkipReason,
)
from kinde_workflows.billing.reporter import SeatUsageReporter
from kinde_workflows.billing.sink import MeteringSink, SubmissionError

__all__ = [
    "AuthEvent",
    "BillingAgreement",
    "DirectoryError",
    "MeterSubmission",
    "MeterType",
    "MeteringSink",
    "Organization",
    "OrganizationDirectory",
    "ReportOutcome",
    "SeatUsageReporter",
    "SkipReason",
    "SubmissionError",
]
