"""
CPU Module for the Round Robin CPU Simulator

The Cpu owns the ready queue and the currently running process and enforces
the Round Robin time quantum. It never schedules anything itself: every
operation returns the Event (if any) marking the moment the newly activated
process will leave the CPU, and the driver puts that event on the event queue.

State machine:
    Idle -> Busy   when a process is promoted from a non-empty ready queue
    Busy -> Busy   on quantum expiry or voluntary departure while others wait
    Busy -> Idle   when a departure leaves the ready queue empty

The next CPU event is due at clock + min(quantum, remaining CPU time,
time to next I/O). Its type tells the driver which bound was hit:

    END_PROCESS     remaining CPU time was the smallest (ties included)
    IO_REQUEST      time to next I/O was at most the quantum
    SWITCH_PROCESS  the quantum expired
"""

from collections import deque
from typing import Deque, Optional
import logging

from config import EventType
from event import Event
from metrics import Statistics
from process import Process
from validators import SimulationError, require_positive


logger = logging.getLogger(__name__)


class Cpu:
    """
    Single CPU scheduled with Round Robin.

    Attributes:
        ready_queue: Processes waiting for the CPU, FIFO
        quantum: Round Robin time slice
        statistics: Aggregate updated as processes are queued and switched
    """

    def __init__(self, quantum: int, statistics: Statistics,
                 ready_queue: Deque[Process] = None):
        self.quantum = require_positive(quantum, "quantum")
        self.statistics = statistics
        self.ready_queue: Deque[Process] = ready_queue if ready_queue is not None else deque()
        self.active_process: Optional[Process] = None
        self._generation = 0

    def __repr__(self) -> str:
        active = self.active_process.process_id if self.active_process else None
        return f"Cpu(quantum={self.quantum}, active={active}, queued={len(self.ready_queue)})"

    # =========================================================================
    # Public contract
    # =========================================================================

    def insert_process(self, process: Process, clock: int) -> Optional[Event]:
        """
        Add a process to the back of the ready queue and switch it in if the
        CPU is idle.

        Returns:
            The event ending the activated process's turn, or None if no
            process was activated
        """
        self._enqueue(process, clock)
        if self.active_process is None:
            return self._promote(clock)
        return None

    def switch_process(self, clock: int) -> Optional[Event]:
        """
        Round Robin preemption: the active process, if any, is switched out
        and placed at the back of the ready queue, then the head of the queue
        is switched in.

        Returns:
            The event ending the activated process's turn, or None if the CPU
            is left idle
        """
        previous = self.active_process
        if previous is not None:
            previous.left_cpu(clock)
            self.active_process = None
            self._enqueue(previous, clock)
            logger.debug(f"t={clock}: P{previous.process_id} preempted "
                         f"({previous.cpu_time_needed} ms left)")
        return self._promote(clock)

    def active_process_left(self, clock: int) -> Optional[Event]:
        """
        Called when the active process left the CPU on its own (to perform
        I/O or to terminate). The departing process is not requeued; the
        caller routes it.

        Returns:
            The event generated by the next switch-in, or None if no process
            was switched in
        """
        if self.active_process is not None:
            logger.debug(f"t={clock}: P{self.active_process.process_id} left the CPU")
            self.active_process = None
        return self._promote(clock)

    def get_active_process(self) -> Optional[Process]:
        """Returns the process currently using the CPU, or None if idle."""
        return self.active_process

    def time_passed(self, elapsed: int) -> None:
        """
        Record that `elapsed` time units passed in the current state.

        Args:
            elapsed: Time since the previous call
        """
        if elapsed < 0:
            raise SimulationError("elapsed time cannot be negative", "elapsed", elapsed)
        stats = self.statistics
        if self.active_process is not None:
            stats.total_busy_cpu_time += elapsed
        else:
            stats.total_idle_cpu_time += elapsed
        stats.cpu_queue_length_time += len(self.ready_queue) * elapsed

    def is_idle(self) -> bool:
        return self.active_process is None

    def is_current(self, event: Event) -> bool:
        """True if the event was issued for the ongoing dispatch of the active process."""
        return (self.active_process is not None
                and event.process is self.active_process
                and event.generation == self._generation)

    # =========================================================================
    # Internals
    # =========================================================================

    def _enqueue(self, process: Process, clock: int) -> None:
        process.enter_cpu_queue(clock)
        self.ready_queue.append(process)
        self.statistics.nof_ready_queue_insertions += 1
        if len(self.ready_queue) > self.statistics.cpu_queue_largest_length:
            self.statistics.cpu_queue_largest_length = len(self.ready_queue)

    def _promote(self, clock: int) -> Optional[Event]:
        """Switch in the head of the ready queue, if there is one."""
        if not self.ready_queue:
            self.active_process = None
            return None

        process = self.ready_queue.popleft()
        process.entered_cpu(clock)
        self.active_process = process
        self._generation += 1
        self.statistics.nof_process_switches += 1
        event = self._next_departure(process, clock)
        logger.debug(f"t={clock}: P{process.process_id} switched in, next {event}")
        return event

    def _next_departure(self, process: Process, clock: int) -> Event:
        remaining = process.cpu_time_needed
        to_io = process.time_to_next_io
        if remaining <= min(self.quantum, to_io):
            event_type, delay = EventType.END_PROCESS, remaining
        elif to_io <= self.quantum:
            event_type, delay = EventType.IO_REQUEST, to_io
        else:
            event_type, delay = EventType.SWITCH_PROCESS, self.quantum
        return Event(event_type, clock + delay, process, self._generation)
