"""
Process Module for the Round Robin CPU Simulator

This module defines the Process class, the timing state machine that tracks
one process's resource demands and how long it has spent in every part of
the system.

Every transition method takes the current simulation clock, settles the time
elapsed since the previous transition into exactly one accumulator, and moves
the process to its next state. Time is therefore never counted twice or
dropped:

    clock - creation_time == total_accounted_time() + (clock - time_of_last_event)

Lifecycle:
    WAITING_FOR_MEMORY -> IN_TRANSIT -> READY <-> RUNNING -> IN_TRANSIT ...
    ... -> WAITING_FOR_IO -> PERFORMING_IO -> IN_TRANSIT -> READY ...
    ... -> IN_TRANSIT (cpu_time_needed == 0) -> COMPLETED
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any
import logging
import random

from config import (
    ProcessState,
    SimulationConfig,
    DEFAULT_SIMULATION_CONFIG
)
from metrics import Statistics
from validators import ClockError, ProcessError, require_clock, require_state


logger = logging.getLogger(__name__)


@dataclass
class Process:
    """
    Represents a process in the simulated system.

    The static demand (memory, total CPU time, average I/O interval) is fixed
    at creation. The random source is only used to draw the time until the
    next I/O request, and is injected so that tests can script it.

    Attributes:
        process_id (int): Unique process identifier
        memory_needed (int): Memory required while in the system (kB)
        total_cpu_time (int): CPU time required to completion (ms)
        avg_io_interval (int): Average CPU time between I/O requests (ms)
        creation_time (int): Simulation time at which the process was created
        cpu_time_needed (int): CPU time still needed; reaches exactly 0 at completion
        time_to_next_io (int): CPU time left until the next I/O request
        time_of_last_event (int): Simulation time of the last transition
        state (ProcessState): Where the process currently is
    """

    # Static demand
    process_id: int
    memory_needed: int
    total_cpu_time: int
    avg_io_interval: int
    creation_time: int = 0
    rng: random.Random = field(default_factory=random.Random, repr=False, compare=False)
    io_jitter: float = field(default=0.2, repr=False)

    # Dynamic state
    cpu_time_needed: int = field(init=False, default=0)
    time_to_next_io: int = field(init=False, default=0)
    time_of_last_event: int = field(init=False, default=0)
    state: ProcessState = field(init=False, default=ProcessState.WAITING_FOR_MEMORY)

    # Accumulators
    time_spent_waiting_for_memory: int = field(init=False, default=0)
    time_spent_in_ready_queue: int = field(init=False, default=0)
    time_spent_in_cpu: int = field(init=False, default=0)
    time_spent_waiting_for_io: int = field(init=False, default=0)
    time_spent_in_io: int = field(init=False, default=0)
    nof_times_in_ready_queue: int = field(init=False, default=0)
    nof_times_in_io_queue: int = field(init=False, default=0)

    def __post_init__(self):
        if self.total_cpu_time <= 0:
            raise ProcessError("total CPU time must be positive", "total_cpu_time",
                               self.total_cpu_time)
        if self.avg_io_interval <= 0:
            raise ProcessError("average I/O interval must be positive", "avg_io_interval",
                               self.avg_io_interval)
        self.cpu_time_needed = self.total_cpu_time
        # The first and latest event involving this process is its creation
        self.time_of_last_event = self.creation_time
        self.calculate_next_io_operation()

    def __str__(self) -> str:
        return (
            f"Process[PID={self.process_id}, State={self.state.name}, "
            f"Remaining={self.cpu_time_needed}/{self.total_cpu_time}, "
            f"NextIO={self.time_to_next_io}]"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Process):
            return False
        return self.process_id == other.process_id

    def __hash__(self) -> int:
        return hash(self.process_id)

    # =========================================================================
    # Transition helpers
    # =========================================================================

    def _transition(self, clock: int, valid_states, target: ProcessState) -> int:
        """Check state and clock, move to target and return the elapsed time."""
        require_state(self, valid_states, target, f"Process {self.process_id}")
        elapsed = require_clock(clock, self.time_of_last_event)
        self.time_of_last_event = clock
        self.state = target
        return elapsed

    def _enroll(self, clock: int, target: ProcessState) -> None:
        """Enter a queue; only allowed at the clock of the preceding departure."""
        elapsed = self._transition(clock, (ProcessState.IN_TRANSIT,), target)
        if elapsed:
            raise ClockError(
                f"process {self.process_id} would leave {elapsed} time units unaccounted",
                "clock", clock
            )

    # =========================================================================
    # Timing transitions
    # =========================================================================

    def left_memory_queue(self, clock: int) -> None:
        """Called when the process is admitted to memory."""
        elapsed = self._transition(clock, (ProcessState.WAITING_FOR_MEMORY,),
                                   ProcessState.IN_TRANSIT)
        self.time_spent_waiting_for_memory += elapsed

    def enter_cpu_queue(self, clock: int) -> None:
        """
        Called when the process is placed in the CPU queue.

        The wait itself is settled later, in entered_cpu.
        """
        self._enroll(clock, ProcessState.READY)
        self.nof_times_in_ready_queue += 1

    def entered_cpu(self, clock: int) -> None:
        elapsed = self._transition(clock, (ProcessState.READY,), ProcessState.RUNNING)
        self.time_spent_in_ready_queue += elapsed

    def left_cpu(self, clock: int) -> None:
        """
        Called when the process is switched out of the CPU.

        The elapsed time is consumed from both the remaining CPU time and the
        time until the next I/O request. Neither goes below zero; zero is the
        signal for the driver to end the process or send it to I/O.
        """
        elapsed = self._transition(clock, (ProcessState.RUNNING,), ProcessState.IN_TRANSIT)
        self.time_spent_in_cpu += elapsed
        if elapsed > self.cpu_time_needed:
            logger.warning(
                f"P{self.process_id} ran {elapsed} ms with only "
                f"{self.cpu_time_needed} ms of work left; clamping"
            )
        self.cpu_time_needed -= min(elapsed, self.cpu_time_needed)
        self.time_to_next_io = max(0, self.time_to_next_io - elapsed)

    def enter_io_queue(self, clock: int) -> None:
        self._enroll(clock, ProcessState.WAITING_FOR_IO)
        self.nof_times_in_io_queue += 1

    def entered_io(self, clock: int) -> None:
        elapsed = self._transition(clock, (ProcessState.WAITING_FOR_IO,),
                                   ProcessState.PERFORMING_IO)
        self.time_spent_waiting_for_io += elapsed

    def left_io(self, clock: int) -> None:
        """Called when an I/O operation completes; draws the next I/O interval."""
        elapsed = self._transition(clock, (ProcessState.PERFORMING_IO,),
                                   ProcessState.IN_TRANSIT)
        self.time_spent_in_io += elapsed
        self.calculate_next_io_operation()

    def calculate_next_io_operation(self) -> int:
        """
        Draw the CPU time until the next I/O request.

        A uniform jitter around the average interval stands in for exponential
        inter-arrival times. Floored at 1 so that the process always makes
        progress between two requests.
        """
        low = (1 - self.io_jitter) * self.avg_io_interval
        high = (1 + self.io_jitter) * self.avg_io_interval
        self.time_to_next_io = max(1, int(self.rng.uniform(low, high)))
        return self.time_to_next_io

    def update_statistics(self, statistics: Statistics) -> None:
        """
        Add this process's data to the statistics. Called once, when the
        process leaves the system.

        Raises:
            ProcessError: If the process still needs CPU time or was already flushed
        """
        if self.state == ProcessState.COMPLETED:
            raise ProcessError(f"statistics of P{self.process_id} were already flushed")
        if not self.is_finished() or self.state != ProcessState.IN_TRANSIT:
            raise ProcessError(
                f"P{self.process_id} cannot leave the system in state {self.state.name} "
                f"with {self.cpu_time_needed} ms of CPU time left"
            )

        statistics.total_time_spent_waiting_for_memory += self.time_spent_waiting_for_memory
        statistics.total_time_spent_in_ready_queue += self.time_spent_in_ready_queue
        statistics.total_time_spent_in_cpu += self.time_spent_in_cpu
        statistics.total_time_spent_waiting_for_io += self.time_spent_waiting_for_io
        statistics.total_time_spent_in_io += self.time_spent_in_io

        statistics.total_nof_times_in_ready_queue += self.nof_times_in_ready_queue
        statistics.total_nof_times_in_io_queue += self.nof_times_in_io_queue

        statistics.nof_completed_processes += 1
        statistics.turnaround_times.append(self.time_of_last_event - self.creation_time)
        self.state = ProcessState.COMPLETED

    # =========================================================================
    # Query Methods
    # =========================================================================

    def is_finished(self) -> bool:
        """True once no CPU time is needed any more."""
        return self.cpu_time_needed == 0

    def needs_io(self) -> bool:
        return self.time_to_next_io == 0 and not self.is_finished()

    def total_accounted_time(self) -> int:
        """Sum of the five time accumulators."""
        return (self.time_spent_waiting_for_memory
                + self.time_spent_in_ready_queue
                + self.time_spent_in_cpu
                + self.time_spent_waiting_for_io
                + self.time_spent_in_io)

    def turnaround_time(self) -> Optional[int]:
        """Time from creation to completion, or None while still in the system."""
        if self.state != ProcessState.COMPLETED:
            return None
        return self.time_of_last_event - self.creation_time

    def to_dict(self) -> Dict[str, Any]:
        return {
            'pid': self.process_id,
            'state': self.state.name,
            'memory_needed': self.memory_needed,
            'total_cpu_time': self.total_cpu_time,
            'cpu_time_needed': self.cpu_time_needed,
            'avg_io_interval': self.avg_io_interval,
            'time_to_next_io': self.time_to_next_io,
            'creation_time': self.creation_time,
            'time_spent_waiting_for_memory': self.time_spent_waiting_for_memory,
            'time_spent_in_ready_queue': self.time_spent_in_ready_queue,
            'time_spent_in_cpu': self.time_spent_in_cpu,
            'time_spent_waiting_for_io': self.time_spent_waiting_for_io,
            'time_spent_in_io': self.time_spent_in_io,
            'nof_times_in_ready_queue': self.nof_times_in_ready_queue,
            'nof_times_in_io_queue': self.nof_times_in_io_queue,
            'turnaround_time': self.turnaround_time()
        }


# =============================================================================
# PROCESS CREATION
# =============================================================================

class ProcessIdGenerator:
    """Hands out process IDs 1, 2, 3, ... for one simulation run."""

    def __init__(self, start: int = 1):
        self._start = start
        self._next_pid = start

    def next_id(self) -> int:
        pid = self._next_pid
        self._next_pid += 1
        return pid

    def reset(self) -> None:
        """Reset the PID counter for a new simulation run."""
        self._next_pid = self._start


class ProcessFactory:
    """
    Creates processes with randomly drawn resource demands.

    Draws are taken from the injected random source in a fixed order
    (memory, CPU time, I/O fraction, then the first I/O interval inside
    Process), so a scripted source yields a predictable process.
    """

    def __init__(self, config: SimulationConfig = None,
                 id_generator: ProcessIdGenerator = None,
                 rng: random.Random = None):
        """
        Args:
            config: SimulationConfig instance (uses default if None)
            id_generator: Source of process IDs (a fresh one if None)
            rng: Random source shared by the factory and its processes
        """
        self.config = config or DEFAULT_SIMULATION_CONFIG
        self.id_generator = id_generator or ProcessIdGenerator()
        self.rng = rng or random.Random(self.config.seed)

    def draw_memory_need(self) -> int:
        """Memory need varies from min_memory_need up to 25% of the memory size."""
        low = self.config.min_memory_need
        return low + int(self.rng.random() * (self.config.memory_size // 4 - low))

    def draw_cpu_time(self) -> int:
        low = self.config.min_cpu_time
        return low + int(self.rng.random() * (self.config.max_cpu_time - low))

    def draw_avg_io_interval(self, cpu_time: int) -> int:
        """Average I/O interval is a whole percentage of the CPU time needed."""
        low, high = self.config.min_io_fraction, self.config.max_io_fraction
        fraction = low + int(self.rng.random() * (high - low + 1))
        return max(1, fraction * cpu_time // 100)

    def create_process(self, creation_time: int) -> Process:
        memory = self.draw_memory_need()
        cpu_time = self.draw_cpu_time()
        avg_io = self.draw_avg_io_interval(cpu_time)
        process = Process(
            process_id=self.id_generator.next_id(),
            memory_needed=memory,
            total_cpu_time=cpu_time,
            avg_io_interval=avg_io,
            creation_time=creation_time,
            rng=self.rng,
            io_jitter=self.config.io_jitter
        )
        logger.debug(f"Created {process}")
        return process
