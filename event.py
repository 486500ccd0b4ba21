"""
Event Module for the Round Robin CPU Simulator

Defines the immutable Event record and the EventQueue that orders pending
events by due time. The simulation is purely discrete-event: nothing happens
between two consecutive events, so the driver only ever needs the earliest one.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
import heapq
import itertools

from config import EventType


@dataclass(frozen=True)
class Event:
    """
    Something that will happen at a given simulation time.

    Attributes:
        event_type: What kind of event this is
        time: Absolute simulation time at which the event fires
        process: The process the event pertains to, if any
        generation: Dispatch stamp of the unit that issued the event; lets the
            driver recognise events issued for an earlier dispatch
    """
    event_type: EventType
    time: int
    process: Optional[Any] = field(default=None, compare=False)
    generation: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.event_type.value,
            'time': self.time,
            'pid': self.process.process_id if self.process is not None else None,
            'generation': self.generation
        }

    def __str__(self) -> str:
        pid = f" P{self.process.process_id}" if self.process is not None else ""
        return f"Event[{self.event_type.value}{pid} @ {self.time}]"


class EventQueue:
    """
    Pending events ordered by due time.

    Events with equal due times are popped in insertion order, which keeps a
    run reproducible for a fixed random seed.
    """

    def __init__(self):
        self._heap: List[Tuple[int, int, Event]] = []
        self._counter = itertools.count()

    def insert(self, event: Event) -> None:
        heapq.heappush(self._heap, (event.time, next(self._counter), event))

    def pop_earliest(self) -> Optional[Event]:
        """Remove and return the earliest event, or None if the queue is empty."""
        if not self._heap:
            return None
        _, _, event = heapq.heappop(self._heap)
        return event

    def peek(self) -> Optional[Event]:
        return self._heap[0][2] if self._heap else None

    def clear(self) -> None:
        self._heap.clear()

    def __len__(self) -> int:
        return len(self._heap)

    def __bool__(self) -> bool:
        return bool(self._heap)
