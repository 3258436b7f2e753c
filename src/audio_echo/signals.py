"""Minimal synchronous signal with unsubscribe callables."""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Generic, ParamSpec

P = ParamSpec("P")

Unsubscribe = Callable[[], None]


@dataclass(eq=False)
class _Listener(Generic[P]):
    callback: Callable[P, None]
    once: bool


@dataclass
class Signal(Generic[P]):
    """Fan-out of a single event to connected listeners."""

    _listeners: list[_Listener[P]] = field(default_factory=list)

    def connect(self, callback: Callable[P, None]) -> Unsubscribe:
        """Attach a persistent listener and return its unsubscribe callable."""
        return self._attach(_Listener(callback, once=False))

    def once(self, callback: Callable[P, None]) -> Unsubscribe:
        """Attach a listener that is dropped after its first call."""
        return self._attach(_Listener(callback, once=True))

    def fire(self, *args: P.args, **kwargs: P.kwargs) -> None:
        """Call every listener in connection order."""
        for listener in list(self._listeners):
            # A previous listener may have unsubscribed this one.
            if listener not in self._listeners:
                continue
            if listener.once:
                self._listeners.remove(listener)
            listener.callback(*args, **kwargs)

    def clear(self) -> None:
        """Drop all listeners."""
        self._listeners.clear()

    def __len__(self) -> int:
        return len(self._listeners)

    def _attach(self, listener: _Listener[P]) -> Unsubscribe:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
