"""Exceptions for the collapse engine."""

from __future__ import annotations


class StaleElementError(KeyError):
    """An element id no longer exists in the graph model.

    Raised by model lookups when an id stored in engine state (a collapse
    record, the DAG collapse set, an overlay membership) refers to an element
    that was deleted externally. The engine skips such ids instead of failing.

    Attributes:
        element_id: The id that could not be found
        kind: Element kind that was requested ("node", "edge", "combo"), if known
        message: Human-readable error message
    """

    def __init__(
        self,
        element_id: str,
        kind: str | None = None,
        message: str | None = None,
    ) -> None:
        self.element_id = element_id
        self.kind = kind
        self.message = message or self._default_message()
        super().__init__(self.message)

    def _default_message(self) -> str:
        what = self.kind or "element"
        return f"No {what} with id '{self.element_id}' in the graph model"

    def __str__(self) -> str:
        # KeyError.__str__ wraps the message in quotes
        return self.message


class TransitionInFlightError(Exception):
    """A collapse/expand was requested while another one is running.

    The session catches this and drops the request; re-issuing the action
    once the running transition settles is the expected recovery.

    Attributes:
        requested: Label of the rejected transition, e.g. "collapse_node:A"
        running: Label of the transition currently holding the token
    """

    def __init__(self, requested: str, running: str) -> None:
        self.requested = requested
        self.running = running
        super().__init__(f"Transition '{requested}' rejected: '{running}' is still in flight")
