"""
I/O Device Module for the Round Robin CPU Simulator

A single I/O unit serving requests one at a time in FIFO order. It mirrors
the Cpu: adding a request to an idle device starts it immediately, and every
start returns the END_IO event for the driver to schedule.
"""

from collections import deque
from typing import Deque, Optional, Tuple
import logging
import random

from config import EventType
from event import Event
from metrics import Statistics
from process import Process
from validators import SimulationError, require_positive


logger = logging.getLogger(__name__)


class IoDevice:
    """
    FIFO I/O unit.

    Attributes:
        avg_io_time: Average duration of one operation
        io_jitter: Relative spread of durations around the average
    """

    def __init__(self, avg_io_time: int, statistics: Statistics,
                 rng: random.Random = None, io_jitter: float = 0.2):
        self.avg_io_time = require_positive(avg_io_time, "avg_io_time")
        self.statistics = statistics
        self.rng = rng or random.Random()
        self.io_jitter = io_jitter
        self.io_queue: Deque[Process] = deque()
        self.active_process: Optional[Process] = None
        self._generation = 0

    def add_io_request(self, process: Process, clock: int) -> Optional[Event]:
        """
        Queue an I/O request, starting it at once if the device is idle.

        Returns:
            The END_IO event of the operation started, or None if the device
            was already busy
        """
        process.enter_io_queue(clock)
        self.io_queue.append(process)
        if len(self.io_queue) > self.statistics.io_queue_largest_length:
            self.statistics.io_queue_largest_length = len(self.io_queue)
        if self.active_process is None:
            return self._start_next(clock)
        return None

    def finish_io(self, clock: int) -> Tuple[Process, Optional[Event]]:
        """
        Complete the active operation and start the next one.

        Returns:
            (the process whose I/O finished, END_IO event of the next operation or None)
        """
        process = self.active_process
        if process is None:
            raise SimulationError("no I/O operation in progress", "clock", clock)
        process.left_io(clock)
        self.statistics.nof_processed_io_operations += 1
        self.active_process = None
        return process, self._start_next(clock)

    def is_current(self, event: Event) -> bool:
        return (self.active_process is not None
                and event.process is self.active_process
                and event.generation == self._generation)

    def time_passed(self, elapsed: int) -> None:
        self.statistics.io_queue_length_time += len(self.io_queue) * elapsed

    def draw_io_time(self) -> int:
        factor = self.rng.uniform(1 - self.io_jitter, 1 + self.io_jitter)
        return max(1, int(factor * self.avg_io_time))

    def _start_next(self, clock: int) -> Optional[Event]:
        if not self.io_queue:
            return None
        process = self.io_queue.popleft()
        process.entered_io(clock)
        self.active_process = process
        self._generation += 1
        duration = self.draw_io_time()
        logger.debug(f"t={clock}: P{process.process_id} started I/O for {duration} ms")
        return Event(EventType.END_IO, clock + duration, process, self._generation)
