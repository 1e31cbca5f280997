"""Dialog lifecycle states and the pure transition function between them."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple


class FormState(str, Enum):
    IDLE = "idle"
    EDITING = "editing"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class FormEvent(str, Enum):
    OPEN = "open"
    EDIT = "edit"
    SUBMIT = "submit"
    SUCCEED = "succeed"
    FAIL = "fail"
    CLOSE = "close"


class InvalidTransition(RuntimeError):
    """Raised when an event is not accepted in the current state."""


_TRANSITIONS: Dict[Tuple[FormState, FormEvent], FormState] = {
    (FormState.IDLE, FormEvent.OPEN): FormState.EDITING,
    (FormState.EDITING, FormEvent.EDIT): FormState.EDITING,
    (FormState.EDITING, FormEvent.SUBMIT): FormState.SUBMITTING,
    (FormState.SUBMITTING, FormEvent.SUCCEED): FormState.SUCCEEDED,
    (FormState.SUBMITTING, FormEvent.FAIL): FormState.FAILED,
    (FormState.FAILED, FormEvent.EDIT): FormState.EDITING,
    (FormState.FAILED, FormEvent.SUBMIT): FormState.SUBMITTING,
}


def advance(state: FormState, event: FormEvent) -> FormState:
    """Return the state reached from ``state`` on ``event``."""

    if event is FormEvent.CLOSE:
        return FormState.IDLE
    try:
        return _TRANSITIONS[(state, event)]
    except KeyError:
        raise InvalidTransition(f"Cannot {event.value} while {state.value}") from None


@dataclass(frozen=True)
class Alert:
    """Banner message shown above a form or the appointment list."""

    level: str
    message: str

    @classmethod
    def success(cls, message: str) -> "Alert":
        return cls("success", message)

    @classmethod
    def error(cls, message: str) -> "Alert":
        return cls("error", message)
