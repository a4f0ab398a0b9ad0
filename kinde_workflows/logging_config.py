"""Log setup for workflow handlers.

Handlers pass decision fields through ``extra={"workflow": {...}}``.
With ``KINDE_WF_STRUCTURED_LOGGING`` enabled, :class:`JSONFormatter`
writes one JSON object per record with the keys ``timestamp``, ``level``,
``logger`` and ``message``, a ``workflow`` object when the record carries
one, and ``exc_info`` for exceptions.  Only the keys in
:data:`WORKFLOW_LOG_FIELDS` survive in ``workflow``; anything else a
caller attaches (a raw event, a username) is dropped.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import Any

from kinde_workflows.config import load_settings

_TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

WORKFLOW_LOG_FIELDS = frozenset(
    {
        "org_code",
        "user_id",
        "agreement_id",
        "agreement_count",
        "feature_code",
        "plan_code",
        "reason",
        "status",
    }
)


class JSONFormatter(logging.Formatter):
    """One JSON line per record, with allow-listed workflow fields."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        fields = getattr(record, "workflow", None)
        if isinstance(fields, dict):
            entry["workflow"] = {key: value for key, value in fields.items() if key in WORKFLOW_LOG_FIELDS}

        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str, ensure_ascii=False)


def configure_logging(*, structured: bool | None = None, level: int = logging.INFO) -> None:
    """Replace the root logger's handlers with a single stream handler.

    Parameters
    ----------
    structured:
        Emit JSON lines via :class:`JSONFormatter` instead of plain text.
        Defaults to ``KINDE_WF_STRUCTURED_LOGGING``.
    level:
        Root logger level.
    """
    if structured is None:
        structured = load_settings().structured_logging

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter() if structured else logging.Formatter(_TEXT_FORMAT))
    root_logger.addHandler(handler)
    root_logger.setLevel(level)
