"""Signup username validation."""

from kinde_workflows.username.validator import UsernameValidator, UsernameVerdict, VerdictStatus

__all__ = ["UsernameValidator", "UsernameVerdict", "VerdictStatus"]
