"""Username rules applied during signup.

Checks run in a fixed order and stop at the first failure:

1. Nothing to check if no username (or a non-string) was supplied.
2. Only ASCII letters and digits are allowed.
3. Reserved names are rejected by exact, case-sensitive match.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from enum import Enum

from pydantic import BaseModel, ConfigDict

from kinde_workflows.config import DEFAULT_BANNED_USERNAMES

_ALPHANUMERIC = re.compile(r"[A-Za-z0-9]+")

INVALID_CHARACTERS_MESSAGE = "Username must contain only letters and numbers."
BANNED_MESSAGE = "This username is not allowed."


class VerdictStatus(str, Enum):
    NOT_PROVIDED = "not_provided"
    ALLOWED = "allowed"
    INVALID_CHARACTERS = "invalid_characters"
    BANNED = "banned"


class UsernameVerdict(BaseModel):
    """Result of validating one supplied username."""

    model_config = ConfigDict(frozen=True)

    status: VerdictStatus
    message: str | None = None

    @property
    def rejected(self) -> bool:
        return self.status in (VerdictStatus.INVALID_CHARACTERS, VerdictStatus.BANNED)


class UsernameValidator:
    """Validates usernames against the character rule and a ban list.

    Parameters
    ----------
    banned_usernames:
        Names that may not be registered.
    """

    def __init__(self, banned_usernames: Iterable[str] = DEFAULT_BANNED_USERNAMES) -> None:
        self._banned = frozenset(banned_usernames)

    @property
    def banned_usernames(self) -> frozenset[str]:
        return self._banned

    def validate(self, username: object) -> UsernameVerdict:
        if not username or not isinstance(username, str):
            return UsernameVerdict(status=VerdictStatus.NOT_PROVIDED)

        if not _ALPHANUMERIC.fullmatch(username):
            return UsernameVerdict(status=VerdictStatus.INVALID_CHARACTERS, message=INVALID_CHARACTERS_MESSAGE)

        if username in self._banned:
            return UsernameVerdict(status=VerdictStatus.BANNED, message=BANNED_MESSAGE)

        return UsernameVerdict(status=VerdictStatus.ALLOWED)
