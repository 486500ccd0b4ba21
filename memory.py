"""
Memory Module for the Round Robin CPU Simulator

Models the memory-admission unit: new processes wait in a FIFO memory queue
until there is room for them. Admission is strictly in arrival order, so a
large process at the head of the queue blocks smaller ones behind it.
"""

from collections import deque
from typing import Deque, List
import logging

from metrics import Statistics
from process import Process
from validators import SimulationError, require_positive


logger = logging.getLogger(__name__)


class MemoryManager:
    """Fixed-size memory with a FIFO admission queue."""

    def __init__(self, memory_size: int, statistics: Statistics):
        self.memory_size = require_positive(memory_size, "memory_size")
        self.free_memory = memory_size
        self.statistics = statistics
        self.memory_queue: Deque[Process] = deque()

    def insert_process(self, process: Process) -> None:
        """Place a newly created process at the back of the memory queue."""
        if process.memory_needed > self.memory_size:
            raise SimulationError(
                f"P{process.process_id} needs more memory than exists",
                "memory_needed", process.memory_needed
            )
        self.memory_queue.append(process)
        if len(self.memory_queue) > self.statistics.memory_queue_largest_length:
            self.statistics.memory_queue_largest_length = len(self.memory_queue)

    def check_memory(self, clock: int) -> List[Process]:
        """
        Admit processes from the head of the queue while they fit.

        Returns:
            The admitted processes, in admission order; each has already left
            the memory queue and must be enrolled in the CPU queue at `clock`
        """
        admitted = []
        while self.memory_queue and self.memory_queue[0].memory_needed <= self.free_memory:
            process = self.memory_queue.popleft()
            process.left_memory_queue(clock)
            self.free_memory -= process.memory_needed
            admitted.append(process)
            logger.debug(f"t={clock}: P{process.process_id} admitted "
                         f"({process.memory_needed} kB, {self.free_memory} kB free)")
        return admitted

    def process_completed(self, process: Process) -> None:
        """Release the memory held by a process that left the system."""
        self.free_memory += process.memory_needed
        if self.free_memory > self.memory_size:
            raise SimulationError("memory released twice", "free_memory", self.free_memory)

    def time_passed(self, elapsed: int) -> None:
        self.statistics.memory_queue_length_time += len(self.memory_queue) * elapsed

    @property
    def queue_length(self) -> int:
        return len(self.memory_queue)
