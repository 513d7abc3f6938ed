"""Guard strategies and the named GuardRegistry."""
from __future__ import annotations

from typing import Callable, Protocol, runtime_checkable

from snapfsm.types import EventId, StateId

GuardFn = Callable[[StateId, EventId], bool]


@runtime_checkable
class TransitionGuard(Protocol):
    """Side-effect-free predicate that may veto a defined transition.

    A guard only sees the current state and the event; it never receives the
    snapshot or the payload, so it can be re-evaluated freely.
    """

    def check(self, state: StateId, event: EventId) -> bool: ...


class FunctionGuard:
    """Adapts a plain ``(state, event) -> bool`` callable to TransitionGuard."""

    __slots__ = ("fn",)

    def __init__(self, fn: GuardFn) -> None:
        self.fn = fn

    def check(self, state: StateId, event: EventId) -> bool:
        return bool(self.fn(state, event))

    def __repr__(self) -> str:
        return f"FunctionGuard({getattr(self.fn, '__qualname__', self.fn)!r})"


class NamedGuard:
    """Guard that defers to a predicate registered in a GuardRegistry.

    The name is resolved on every check, so re-registering a name changes the
    behavior of rules that were built earlier.
    """

    __slots__ = ("name", "_registry")

    def __init__(self, name: str, registry: GuardRegistry) -> None:
        self.name = name
        self._registry = registry

    def check(self, state: StateId, event: EventId) -> bool:
        return self._registry.check(self.name, state, event)

    def __repr__(self) -> str:
        return f"NamedGuard({self.name!r})"


def as_guard(guard: TransitionGuard | GuardFn) -> TransitionGuard:
    """Return *guard* as a TransitionGuard, wrapping plain callables."""
    if isinstance(guard, TransitionGuard):
        return guard
    if callable(guard):
        return FunctionGuard(guard)
    raise TypeError(f"Guard must be callable or define check(), got {type(guard).__name__}")


class GuardRegistry:
    """Named ``(state, event)`` predicates shared by several rule tables.

    Rules refer to an entry through ``guard(name)``; because the name is
    looked up on each check, replacing an entry affects every rule bound to it.
    """

    def __init__(self) -> None:
        self._guards: dict[str, GuardFn] = {}

    def register(self, name: str, fn: GuardFn) -> None:
        """Bind *name* to a ``(state, event) -> bool`` predicate, replacing any earlier one."""
        self._guards[name] = fn

    def check(self, name: str, state: StateId, event: EventId) -> bool:
        """Run the predicate bound to *name* for a transition out of *state* on *event*."""
        try:
            fn = self._guards[name]
        except KeyError:
            raise KeyError(f"No guard registered under {name!r}") from None
        return bool(fn(state, event))

    def has(self, name: str) -> bool:
        return name in self._guards

    def names(self) -> list[str]:
        """Bound names, in registration order."""
        return list(self._guards)

    def guard(self, name: str) -> NamedGuard:
        """Return a guard strategy bound to *name* for use in rule tables.

        Raises KeyError if the name is not registered yet.
        """
        if name not in self._guards:
            raise KeyError(f"No guard registered under {name!r}")
        return NamedGuard(name, self)
