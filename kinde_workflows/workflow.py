"""Workflow declarations read by the hosting runtime.

Each handler module exports a :class:`WorkflowSettings` instance next to
its entry point.  The runtime owns trigger delivery and applies the
declared failure policy when a handler raises.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class WorkflowTrigger(str, Enum):
    """Runtime events a workflow can subscribe to."""

    POST_AUTHENTICATION = "user:post_authentication"
    NEW_USERNAME_PROVIDED = "user:new_username_provided"


class FailureAction(str, Enum):
    """What the runtime does with the triggering flow when a handler raises."""

    STOP = "stop"
    CONTINUE = "continue"


class FailurePolicy(BaseModel):
    model_config = ConfigDict(frozen=True)

    action: FailureAction = FailureAction.STOP


class WorkflowSettings(BaseModel):
    """Static metadata describing one workflow.

    Attributes
    ----------
    id:
        Stable workflow identifier.
    name:
        Human-readable name shown in the runtime dashboard.
    trigger:
        Event that invokes the workflow.
    failure_policy:
        Runtime behaviour when the handler raises.
    bindings:
        Runtime capabilities the handler needs (``kinde.env``,
        ``kinde.fetch``, ``kinde.widget``, ...).
    """

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    trigger: WorkflowTrigger
    failure_policy: FailurePolicy = Field(default_factory=FailurePolicy)
    bindings: dict[str, dict[str, Any]] = Field(default_factory=dict)

    def to_host_dict(self) -> dict[str, Any]:
        """Render the declaration with the runtime's camelCase keys."""
        return {
            "id": self.id,
            "name": self.name,
            "trigger": self.trigger.value,
            "failurePolicy": {"action": self.failure_policy.action.value},
            "bindings": {key: dict(value) for key, value in self.bindings.items()},
        }
