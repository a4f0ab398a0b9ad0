"""Username workflow: validate a username supplied during signup.

Rejections are reported back through the runtime's widget binding, which
marks the ``p_username`` form field invalid with a user-facing message.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from kinde_workflows.config import load_settings
from kinde_workflows.username.validator import UsernameValidator, UsernameVerdict
from kinde_workflows.workflow import FailureAction, FailurePolicy, WorkflowSettings, WorkflowTrigger

logger = logging.getLogger(__name__)

USERNAME_FIELD = "p_username"

VALIDATE_USERNAME_SETTINGS = WorkflowSettings(
    id="onUsernameProvided",
    name="Validate username",
    trigger=WorkflowTrigger.NEW_USERNAME_PROVIDED,
    failure_policy=FailurePolicy(action=FailureAction.STOP),
    bindings={"kinde.widget": {}},
)


class FormWidget(Protocol):
    """The runtime's widget binding."""

    def invalidate_form_field(self, field_name: str, message: str) -> None: ...


async def validate_new_username(
    payload: dict[str, Any],
    widget: FormWidget,
    *,
    validator: UsernameValidator | None = None,
) -> UsernameVerdict:
    """Handle one ``user:new_username_provided`` event.

    Reads ``context.auth.suppliedUsername`` from *payload* and, when the
    validator rejects it, invalidates the username field on *widget*.
    The supplied username itself is never logged.
    """
    if validator is None:
        validator = UsernameValidator(load_settings().banned_usernames)

    auth = (payload.get("context") or {}).get("auth") or {}
    verdict = validator.validate(auth.get("suppliedUsername"))

    if verdict.rejected:
        assert verdict.message is not None
        widget.invalidate_form_field(USERNAME_FIELD, verdict.message)

    logger.info("Username validation finished", extra={"workflow": {"status": verdict.status.value}})
    return verdict
