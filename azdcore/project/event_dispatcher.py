"""Registration and dispatch of named lifecycle events."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any, Generic, TypeVar

T = TypeVar("T")

EventHandler = Callable[[T], Any]


class InvalidEventError(ValueError):
    """Raised when an event name is not valid for a dispatcher."""

    def __init__(self, name: str) -> None:
        super().__init__(f"{name}: invalid event name for the current type")
        self.name = name


class EventHandlerError(Exception):
    """Raised when one or more event handlers fail."""

    def __init__(self, message: str, errors: Sequence[BaseException] = ()) -> None:
        super().__init__(message)
        self.errors = list(errors)


class EventDispatcher(Generic[T]):
    """Dispatches events to registered handlers.

    Each valid event name also allows its "pre" and "post" variants. A
    dispatcher created without names accepts any event name.
    """

    def __init__(self, *args: str) -> None:
        self._handlers: dict[str, list[EventHandler[T]]] = {}
        self._event_names: set[str] = set()
        for name in args:
            self._event_names.update((name, f"pre{name}", f"post{name}"))

    def add_handler(self, name: str, handler: EventHandler[T]) -> None:
        """Register a handler for the named event."""
        self._validate(name)
        self._handlers.setdefault(name, []).append(handler)

    def remove_handler(self, name: str, handler: EventHandler[T]) -> None:
        """Unregister the first matching handler for the named event."""
        self._validate(name)
        handlers = self._handlers.get(name, [])
        for index, existing in enumerate(handlers):
            if existing == handler:
                del handlers[index]
                return
        raise ValueError(
            f"specified handler was not found in {name} event registrations"
        )

    def raise_event(self, name: str, event_args: T) -> None:
        """Call every handler registered for the event.

        All handlers run; failures are collected into one EventHandlerError.
        """
        self._validate(name)
        errors: list[Exception] = []
        for handler in list(self._handlers.get(name, [])):
            try:
                handler(event_args)
            except Exception as exc:  # noqa: BLE001 - handlers' errors are aggregated
                errors.append(exc)
        if errors:
            raise EventHandlerError(",".join(str(e) for e in errors), errors)

    def invoke(self, name: str, event_args: T, action: Callable[[], Any]) -> Any:
        """Raise the "pre" event, run the action, then raise the "post" event.

        Returns the result of the action.
        """
        self._validate(name)
        try:
            self.raise_event(f"pre{name}", event_args)
        except EventHandlerError as exc:
            raise EventHandlerError(
                f"failed invoking event handlers for 'pre{name}', {exc}", exc.errors
            ) from exc

        result = action()

        try:
            self.raise_event(f"post{name}", event_args)
        except EventHandlerError as exc:
            raise EventHandlerError(
                f"failed invoking event handlers for 'post{name}', {exc}", exc.errors
            ) from exc

        return result

    def _validate(self, name: str) -> None:
        if self._event_names and name not in self._event_names:
            raise InvalidEventError(name)