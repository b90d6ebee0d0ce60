"""Error kinds shared by the quiz and progress features."""

from __future__ import annotations


class InvalidInput(ValueError):
    """Malformed question or answer data. A caller bug, not user-recoverable."""


class StaleReference(LookupError):
    """The module a quiz session points at no longer exists."""

    def __init__(self, module_id: str) -> None:
        super().__init__(f"module {module_id} no longer exists")
        self.module_id = module_id


class LookupMiss(KeyError):
    """Unknown id in an aggregation lookup snapshot.

    Always recovered by the aggregation layer with a sentinel label.
    """


class GateTransitionError(RuntimeError):
    """Quiz gate asked to move along an edge it does not have.

    ``code`` is a short snake_case reason surfaced as the HTTP detail.
    """

    def __init__(self, code: str, state: str | None = None) -> None:
        super().__init__(code if state is None else f"{code} (state={state})")
        self.code = code
        self.state = state


__all__ = ["InvalidInput", "StaleReference", "LookupMiss", "GateTransitionError"]
