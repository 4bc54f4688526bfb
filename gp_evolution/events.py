"""
gp_evolution/events.py - Lifecycle events and the synchronous event bus

Listeners observe the engine without the engine knowing about them. Firing an
event calls every matching listener inline, in registration order, before
control returns to the caller. Listeners must treat the individuals and
populations they receive as read-only. The one exception is operator events,
where a listener may veto the offspring or substitute its own (see
``EventBus.review``).
"""
import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, List, Optional, Tuple, Type

from .exceptions import ConfigurationError
from .individual import Individual
from .population import Population

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Event:
    """Base class of every lifecycle event"""


@dataclass(frozen=True)
class StartBatch(Event):
    runs: int


@dataclass(frozen=True)
class EndBatch(Event):
    best: Optional[Individual]
    failed_runs: Tuple[int, ...] = ()


@dataclass(frozen=True)
class StartRun(Event):
    run_index: int


@dataclass(frozen=True)
class EndRun(Event):
    run_index: int
    best: Optional[Individual]
    generations: int
    duration: float
    error: Optional[BaseException] = None


@dataclass(frozen=True)
class StartInitialisation(Event):
    run_index: int


@dataclass(frozen=True)
class EndInitialisation(Event):
    run_index: int
    population: Population


@dataclass(frozen=True)
class StartGeneration(Event):
    run_index: int
    generation: int
    population: Population


@dataclass(frozen=True)
class EndGeneration(Event):
    run_index: int
    generation: int
    population: Population
    duration: float = 0.0


@dataclass(frozen=True)
class FitnessEvaluated(Event):
    individual: Individual
    fitness: float
    duration: float


@dataclass(frozen=True)
class OperatorEvent(Event):
    """A variation operator produced candidate offspring"""
    operator: str
    parents: Tuple[Individual, ...]
    children: Tuple[Individual, ...]
    generation: int = 0


@dataclass(frozen=True)
class CrossoverEvent(OperatorEvent):
    pass


@dataclass(frozen=True)
class MutationEvent(OperatorEvent):
    pass


@dataclass(frozen=True)
class ReproductionEvent(OperatorEvent):
    pass


@dataclass(frozen=True)
class Accepted:
    """Operator outcome: keep these offspring"""
    children: Tuple[Individual, ...]


class _Rejected:
    """Operator outcome: discard the offspring and retry from selection"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return 'Rejected'

    def __bool__(self):
        return False


Rejected = _Rejected()

Listener = Callable[[Event], Any]


@dataclass
class _Subscription:
    event_type: Type[Event]
    listener: Listener


class EventBus:
    """Synchronous in-process publish/subscribe channel"""

    def __init__(self):
        self._subscriptions: List[_Subscription] = []

    def subscribe(self, event_type: Type[Event], listener: Listener) -> None:
        """Register ``listener`` for ``event_type`` and its subclasses"""
        if not (isinstance(event_type, type) and issubclass(event_type, Event)):
            raise ConfigurationError(f"Not an event type: {event_type!r}")
        if not callable(listener):
            raise ConfigurationError(f"Listener is not callable: {listener!r}")
        if self.is_subscribed(event_type, listener):
            raise ConfigurationError(
                f"Listener {listener!r} is already subscribed to {event_type.__name__}")
        self._subscriptions.append(_Subscription(event_type, listener))

    def unsubscribe(self, event_type: Type[Event], listener: Listener) -> bool:
        for i, subscription in enumerate(self._subscriptions):
            if subscription.event_type is event_type and subscription.listener == listener:
                del self._subscriptions[i]
                return True
        return False

    def is_subscribed(self, event_type: Type[Event], listener: Listener) -> bool:
        return any(s.event_type is event_type and s.listener == listener
                   for s in self._subscriptions)

    def _listeners_for(self, event_type: Type[Event]) -> List[Listener]:
        # Snapshot so listeners may (un)subscribe while being notified
        return [s.listener for s in self._subscriptions if issubclass(event_type, s.event_type)]

    def publish(self, event_type: Type[Event], event: Event) -> None:
        """Notify every listener registered for ``event_type`` or a base of it"""
        if not isinstance(event, event_type):
            raise TypeError(f"{type(event).__name__} is not a {event_type.__name__}")
        for listener in self._listeners_for(event_type):
            listener(event)

    def review(self, event_type: Type[OperatorEvent], event: OperatorEvent):
        """Publish an operator event and collect the listeners' verdict.

        A listener returning ``Rejected`` vetoes the offspring (remaining
        listeners are skipped); returning ``Accepted(children)`` substitutes
        the offspring for later listeners and the caller; any other return
        value leaves the offspring as they are.
        """
        if not isinstance(event, event_type):
            raise TypeError(f"{type(event).__name__} is not a {event_type.__name__}")
        outcome = Accepted(tuple(event.children))
        for listener in self._listeners_for(event_type):
            verdict = listener(event)
            if verdict is Rejected:
                logger.debug("%s offspring rejected by %r", event.operator, listener)
                return Rejected
            if isinstance(verdict, Accepted):
                outcome = verdict
                event = replace(event, children=tuple(verdict.children))
        return outcome

    def clear(self) -> None:
        self._subscriptions.clear()

    def __len__(self) -> int:
        return len(self._subscriptions)


_default_bus: Optional[EventBus] = None


def default_bus() -> EventBus:
    """Process-wide bus for application front-ends; the engine never uses it implicitly"""
    global _default_bus
    if _default_bus is None:
        _default_bus = EventBus()
    return _default_bus
