from __future__ import annotations

from typing import Any, Callable

from datacenter.models import ConfirmationRequest


class ConfirmationController:
    """One pending confirmation at a time; a new request replaces the open one."""

    def __init__(self):
        self.current = ConfirmationRequest()

    @property
    def is_open(self) -> bool:
        return self.current.is_open

    @property
    def message(self) -> str:
        return self.current.message

    def request(self, message: str, on_confirm: Callable[[], Any]) -> None:
        self.current = ConfirmationRequest(is_open=True, message=message, on_confirm=on_confirm)

    def confirm(self) -> bool:
        if not self.current.is_open:
            return False
        action = self.current.on_confirm
        try:
            action()
        finally:
            self.current = ConfirmationRequest()
        return True

    def cancel(self) -> None:
        self.current = ConfirmationRequest()
