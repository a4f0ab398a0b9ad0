"""Kinde Management API access for workflow handlers."""

from kinde_workflows.management.client import ManagementAPIClient, ManagementAPIError

__all__ = ["ManagementAPIClient", "ManagementAPIError"]
