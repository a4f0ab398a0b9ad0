"""Organization lookups for the seat-usage reporter.

:class:`OrganizationDirectory` is the read-only collaborator the reporter
depends on.  :class:`ManagementAPIDirectory` implements it against the
Management API ``organization`` endpoint.
"""

from __future__ import annotations

import logging
from collections.abc import Collection
from typing import Protocol

from pydantic import ValidationError

from kinde_workflows.billing.models import Organization
from kinde_workflows.management.client import ManagementAPIClient, ManagementAPIError

logger = logging.getLogger(__name__)


class DirectoryError(Exception):
    """Raised when an organization cannot be fetched (unknown code, network failure)."""


class OrganizationDirectory(Protocol):
    """Protocol for organization lookups."""

    async def get(self, org_code: str, expand: Collection[str] = ()) -> Organization:
        """Return the organization identified by *org_code*."""
        ...


class ManagementAPIDirectory:
    """Fetches organizations through the Management API.

    Parameters
    ----------
    client:
        An authenticated :class:`ManagementAPIClient`.
    """

    def __init__(self, client: ManagementAPIClient) -> None:
        self._client = client

    async def get(self, org_code: str, expand: Collection[str] = ()) -> Organization:
        """Fetch ``GET /organization?code=<org_code>&expand=<expand>``.

        Raises
        ------
        DirectoryError
            On any HTTP or transport failure, or a malformed response body.
        """
        params = {"code": org_code}
        if expand:
            params["expand"] = ",".join(sorted(expand))

        try:
            body = await self._client.get("organization", params=params)
        except ManagementAPIError as exc:
            raise DirectoryError(f"Failed to fetch organization {org_code}: {exc}") from exc

        try:
            organization = Organization.from_api(body, code=org_code)
        except (AttributeError, TypeError, ValidationError) as exc:
            raise DirectoryError(f"Malformed organization response for {org_code}: {exc}") from exc

        logger.debug(
            "Fetched organization",
            extra={"workflow": {"org_code": org_code, "agreement_count": len(organization.billing_agreements)}},
        )
        return organization
