from __future__ import annotations

from dataclasses import dataclass
from typing import List

SEVERITIES = ("success", "info", "warning", "error")


@dataclass(frozen=True)
class Notice:
    message: str
    severity: str = "error"


class Notifier:
    """Queue of transient notices; the page drains it once per run into st.toast."""

    def __init__(self):
        self._pending: List[Notice] = []

    def push(self, message: str, severity: str = "error") -> None:
        if severity not in SEVERITIES:
            severity = "info"
        self._pending.append(Notice(message or "Something went wrong.", severity))

    def error(self, message: str) -> None:
        self.push(message, "error")

    def success(self, message: str) -> None:
        self.push(message, "success")

    def drain(self) -> List[Notice]:
        out, self._pending = self._pending, []
        return out

    def __len__(self) -> int:
        return len(self._pending)
