"""
Simulation Engine Module for the Round Robin CPU Simulator

This module provides the discrete-event driver that wires the components
together: processes, the memory unit, the CPU, the I/O device, the event
queue and the statistics aggregate.

The simulation follows a discrete event model:
1. Pop the earliest event from the event queue
2. Tell every unit how much simulated time passed since the previous event
3. Dispatch the event to its handler:
   - NEW_PROCESS: a process is created and queued for memory
   - SWITCH_PROCESS: the CPU's quantum expired
   - END_PROCESS: the active process finished its work
   - IO_REQUEST: the active process leaves the CPU to perform I/O
   - END_IO: the I/O device finished an operation
4. Schedule whatever events the handler produced
5. Continue until the next event lies beyond the simulation length

CPU and I/O events carry the dispatch generation of the unit that issued
them. An event whose process or generation no longer matches the unit's
current dispatch is stale and ignored.
"""

from dataclasses import dataclass
from typing import Dict, Any, Optional, Callable
from enum import Enum
import logging
import random
import time

from config import (
    EventType,
    SimulationConfig,
    DEFAULT_SIMULATION_CONFIG
)
from cpu import Cpu
from event import Event, EventQueue
from io_device import IoDevice
from memory import MemoryManager
from metrics import Statistics
from process import Process, ProcessFactory, ProcessIdGenerator
from validators import ConfigValidator, SimulationError


logger = logging.getLogger(__name__)


class SimulationState(Enum):
    """
    States of the simulation engine.

    State Transitions:
    IDLE -> RUNNING (first step)
    RUNNING -> COMPLETED (next event beyond the simulation length)
    RUNNING -> STOPPED (user stop)
    """
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    STOPPED = "stopped"


@dataclass
class SimulationResult:
    """
    Complete results of a simulation run.
    """
    config: SimulationConfig
    statistics: Statistics
    total_time: int
    events_processed: int
    execution_duration: float  # Real wall-clock time

    def summary(self) -> Dict[str, float]:
        return self.statistics.summary(self.total_time)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for export."""
        return {
            'config': self.config.to_dict(),
            'total_time': self.total_time,
            'events_processed': self.events_processed,
            'execution_duration': round(self.execution_duration, 3),
            'statistics': self.statistics.to_dict(),
            'summary': self.summary()
        }


class SimulationEngine:
    """
    Discrete-event driver for the Round Robin simulation.

    Usage:
        engine = SimulationEngine(config)
        result = engine.run()
        # or for step-by-step:
        engine.initialize()
        while engine.step():
            pass
        result = engine.get_result()
    """

    def __init__(self, config: SimulationConfig = None, rng: random.Random = None):
        """
        Args:
            config: Simulation configuration
            rng: Random source for the whole run (seeded from config if None)
        """
        self.config = config or DEFAULT_SIMULATION_CONFIG
        self._external_rng = rng

        self.rng: Optional[random.Random] = None
        self.statistics: Optional[Statistics] = None
        self.event_queue: Optional[EventQueue] = None
        self.cpu: Optional[Cpu] = None
        self.memory: Optional[MemoryManager] = None
        self.io: Optional[IoDevice] = None
        self.process_factory: Optional[ProcessFactory] = None

        self.state = SimulationState.IDLE
        self.clock = 0
        self.events_processed = 0
        self._initialized = False

        self._handlers: Dict[EventType, Callable[[Event], None]] = {
            EventType.NEW_PROCESS: self._create_process,
            EventType.SWITCH_PROCESS: self._switch_process,
            EventType.END_PROCESS: self._end_process,
            EventType.IO_REQUEST: self._process_io_request,
            EventType.END_IO: self._end_io_operation,
        }

        # Callbacks
        self._on_event_callback: Optional[Callable[[Event], None]] = None
        self._on_process_complete_callback: Optional[Callable[[Process], None]] = None

        # Performance tracking
        self._start_wall_time: float = 0
        self._end_wall_time: float = 0

    def set_callbacks(self,
                      on_event: Callable[[Event], None] = None,
                      on_process_complete: Callable[[Process], None] = None):
        """
        Set callback functions for events.

        Args:
            on_event: Called after each dispatched event
            on_process_complete: Called when a process leaves the system
        """
        self._on_event_callback = on_event
        self._on_process_complete_callback = on_process_complete

    def initialize(self) -> None:
        """Build all components for a fresh run and schedule the first arrival."""
        ConfigValidator.validate_or_raise(self.config)

        self.rng = self._external_rng or random.Random(self.config.seed)
        self.statistics = Statistics()
        self.event_queue = EventQueue()
        self.cpu = Cpu(self.config.time_quantum, self.statistics)
        self.memory = MemoryManager(self.config.memory_size, self.statistics)
        self.io = IoDevice(self.config.avg_io_time, self.statistics, self.rng,
                           io_jitter=self.config.io_jitter)
        self.process_factory = ProcessFactory(self.config, ProcessIdGenerator(), self.rng)

        self.state = SimulationState.IDLE
        self.clock = 0
        self.events_processed = 0
        self._start_wall_time = 0
        self._end_wall_time = 0
        self._initialized = True

        self.event_queue.insert(Event(EventType.NEW_PROCESS, 0))
        logger.info(f"Simulation initialized: quantum={self.config.time_quantum}, "
                    f"memory={self.config.memory_size}, length={self.config.simulation_length}")

    def step(self) -> bool:
        """
        Dispatch the next event.

        Returns:
            True if simulation should continue, False if done
        """
        if not self._initialized:
            self.initialize()
        if self.is_complete():
            return False

        if self.state == SimulationState.IDLE:
            self.state = SimulationState.RUNNING
            self._start_wall_time = time.time()

        upcoming = self.event_queue.peek()
        if upcoming is None or upcoming.time > self.config.simulation_length:
            self._advance_to(self.config.simulation_length)
            self._finish(SimulationState.COMPLETED)
            return False

        event = self.event_queue.pop_earliest()
        self._advance_to(event.time)
        self._handlers[event.event_type](event)
        self.events_processed += 1

        if self._on_event_callback:
            self._on_event_callback(event)
        return True

    def run(self) -> SimulationResult:
        """
        Run the simulation to the end.

        Returns:
            SimulationResult containing all data
        """
        if not self._initialized:
            self.initialize()
        while self.step():
            pass
        return self.get_result()

    def stop(self):
        """Stop the simulation."""
        self._finish(SimulationState.STOPPED)

    def is_complete(self) -> bool:
        """Check if simulation is complete."""
        return self.state in (SimulationState.COMPLETED, SimulationState.STOPPED)

    def get_result(self) -> SimulationResult:
        """
        Get simulation results.

        Returns:
            SimulationResult with all data
        """
        if self._end_wall_time == 0:
            self._end_wall_time = time.time()

        return SimulationResult(
            config=self.config,
            statistics=self.statistics,
            total_time=self.clock,
            events_processed=self.events_processed,
            execution_duration=self._end_wall_time - (self._start_wall_time or self._end_wall_time)
        )

    def get_current_state(self) -> Dict[str, Any]:
        """
        Get current simulation state for display.

        Returns:
            Dictionary with current state information
        """
        active = self.cpu.get_active_process() if self.cpu else None
        in_io = self.io.active_process if self.io else None
        return {
            'time': self.clock,
            'state': self.state.value,
            'events_processed': self.events_processed,
            'pending_events': len(self.event_queue) if self.event_queue else 0,
            'memory_queue': self.memory.queue_length if self.memory else 0,
            'free_memory': self.memory.free_memory if self.memory else 0,
            'ready_queue': [p.process_id for p in self.cpu.ready_queue] if self.cpu else [],
            'active_process': active.process_id if active else None,
            'io_queue': [p.process_id for p in self.io.io_queue] if self.io else [],
            'io_active_process': in_io.process_id if in_io else None,
            'completed': self.statistics.nof_completed_processes if self.statistics else 0
        }

    # =========================================================================
    # Clock
    # =========================================================================

    def _advance_to(self, new_time: int) -> None:
        elapsed = new_time - self.clock
        if elapsed < 0:
            raise SimulationError("event dispatched out of order", "time", new_time)
        self.cpu.time_passed(elapsed)
        self.memory.time_passed(elapsed)
        self.io.time_passed(elapsed)
        self.clock = new_time

    def _finish(self, final_state: SimulationState) -> None:
        self.state = final_state
        self._end_wall_time = time.time()
        if self.statistics is not None:
            logger.info(f"Simulation {final_state.value} at t={self.clock}: "
                        f"{self.statistics.nof_completed_processes} of "
                        f"{self.statistics.nof_created_processes} processes completed")

    def _schedule(self, event: Optional[Event]) -> None:
        if event is not None:
            self.event_queue.insert(event)

    # =========================================================================
    # Event handlers
    # =========================================================================

    def _create_process(self, event: Event) -> None:
        process = self.process_factory.create_process(self.clock)
        self.statistics.nof_created_processes += 1
        self.memory.insert_process(process)

        interval = int(2 * self.rng.random() * self.config.avg_arrival_interval)
        self._schedule(Event(EventType.NEW_PROCESS, self.clock + interval))
        self._admit_from_memory()

    def _admit_from_memory(self) -> None:
        for process in self.memory.check_memory(self.clock):
            self._schedule(self.cpu.insert_process(process, self.clock))

    def _switch_process(self, event: Event) -> None:
        if not self.cpu.is_current(event):
            logger.debug(f"Ignoring stale {event}")
            return
        self._schedule(self.cpu.switch_process(self.clock))

    def _end_process(self, event: Event) -> None:
        if not self.cpu.is_current(event):
            logger.debug(f"Ignoring stale {event}")
            return
        process = event.process
        process.left_cpu(self.clock)
        if not process.is_finished():
            raise SimulationError(
                f"P{process.process_id} ended with work left", "cpu_time_needed",
                process.cpu_time_needed
            )
        process.update_statistics(self.statistics)
        self.memory.process_completed(process)
        logger.debug(f"t={self.clock}: P{process.process_id} completed")
        if self._on_process_complete_callback:
            self._on_process_complete_callback(process)

        self._schedule(self.cpu.active_process_left(self.clock))
        self._admit_from_memory()

    def _process_io_request(self, event: Event) -> None:
        if not self.cpu.is_current(event):
            logger.debug(f"Ignoring stale {event}")
            return
        process = event.process
        process.left_cpu(self.clock)
        self._schedule(self.cpu.active_process_left(self.clock))
        self._schedule(self.io.add_io_request(process, self.clock))

    def _end_io_operation(self, event: Event) -> None:
        if not self.io.is_current(event):
            logger.debug(f"Ignoring stale {event}")
            return
        process, next_io = self.io.finish_io(self.clock)
        self._schedule(next_io)
        self._schedule(self.cpu.insert_process(process, self.clock))
