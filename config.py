"""
Configuration Module for the Round Robin CPU Simulator

Enumerations shared by every unit, the run parameters and the logging
settings. The defaults describe a small batch system: a 2048 kB memory unit, one CPU
time-sliced with a 500 ms quantum, and a single I/O device.
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Dict, Any, Optional


# =============================================================================
# ENUMERATIONS - Define categorical constants
# =============================================================================

class ProcessState(Enum):
    """
    Where a process currently is in the simulated system.

    - WAITING_FOR_MEMORY: Created, waiting in the memory queue for admission
    - IN_TRANSIT: Just left one stage and not yet enrolled in the next one
    - READY: Waiting in the CPU (ready) queue
    - RUNNING: Executing on the CPU
    - WAITING_FOR_IO: Waiting in the I/O queue
    - PERFORMING_IO: Being served by the I/O device
    - COMPLETED: Finished; statistics have been flushed
    """
    WAITING_FOR_MEMORY = auto()
    IN_TRANSIT = auto()
    READY = auto()
    RUNNING = auto()
    WAITING_FOR_IO = auto()
    PERFORMING_IO = auto()
    COMPLETED = auto()


class EventType(Enum):
    """
    Kinds of discrete events pumped through the event queue.

    The CPU itself only produces SWITCH_PROCESS, END_PROCESS and IO_REQUEST;
    the other kinds belong to the driver and the I/O device.
    """
    NEW_PROCESS = "new process"
    SWITCH_PROCESS = "switch process"
    END_PROCESS = "end process"
    IO_REQUEST = "io request"
    END_IO = "end io"


# =============================================================================
# SIMULATION CONFIGURATION
# =============================================================================

@dataclass
class SimulationConfig:
    """
    Main configuration class for the simulation.

    Attributes:
        memory_size: Size of the memory unit (kB)
        time_quantum: Round Robin time slice (ms)
        avg_io_time: Average duration of one I/O operation (ms)
        avg_arrival_interval: Average time between process arrivals (ms)
        simulation_length: Simulated time after which the run stops (ms)
        seed: Seed for the run's random source (None for nondeterministic runs)
    """
    # System Configuration
    memory_size: int = 2048
    time_quantum: int = 500
    avg_io_time: int = 225

    # Workload Configuration
    avg_arrival_interval: int = 5000
    simulation_length: int = 250000
    seed: Optional[int] = None

    # Process Demand Parameters
    min_memory_need: int = 100
    min_cpu_time: int = 100
    max_cpu_time: int = 10000
    min_io_fraction: int = 1    # percent of CPU time
    max_io_fraction: int = 25   # percent of CPU time
    io_jitter: float = 0.2      # +/- fraction around the average I/O interval

    def validate(self) -> bool:
        """
        Validate configuration parameters.

        Returns:
            bool: True if configuration is valid

        Raises:
            ValueError: If any parameter is invalid
        """
        if self.memory_size // 4 <= self.min_memory_need:
            raise ValueError(
                f"memory_size must be larger than {4 * self.min_memory_need} "
                f"so that a quarter of it exceeds min_memory_need"
            )

        if self.time_quantum < 1:
            raise ValueError("time_quantum must be at least 1")

        if self.avg_io_time < 1:
            raise ValueError("avg_io_time must be at least 1")

        if self.avg_arrival_interval < 1:
            raise ValueError("avg_arrival_interval must be at least 1")

        if self.simulation_length < 1:
            raise ValueError("simulation_length must be at least 1")

        if not (0 < self.min_cpu_time < self.max_cpu_time):
            raise ValueError("min_cpu_time must be positive and below max_cpu_time")

        if not (1 <= self.min_io_fraction <= self.max_io_fraction <= 100):
            raise ValueError("I/O fractions must satisfy 1 <= min <= max <= 100")

        if not (0 <= self.io_jitter < 1):
            raise ValueError("io_jitter must be in [0, 1)")

        return True

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert configuration to dictionary for serialization.

        Returns:
            Dict containing all configuration parameters
        """
        return {
            'memory_size': self.memory_size,
            'time_quantum': self.time_quantum,
            'avg_io_time': self.avg_io_time,
            'avg_arrival_interval': self.avg_arrival_interval,
            'simulation_length': self.simulation_length,
            'seed': self.seed,
            'min_memory_need': self.min_memory_need,
            'min_cpu_time': self.min_cpu_time,
            'max_cpu_time': self.max_cpu_time,
            'min_io_fraction': self.min_io_fraction,
            'max_io_fraction': self.max_io_fraction,
            'io_jitter': self.io_jitter
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SimulationConfig':
        """
        Create configuration from dictionary.

        Unknown keys are ignored so that exported results can be fed back in.

        Args:
            data: Dictionary containing configuration parameters

        Returns:
            SimulationConfig instance
        """
        config = cls()
        for key, value in data.items():
            if hasattr(config, key):
                setattr(config, key, value)
        return config


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

@dataclass
class LoggingConfig:
    """
    Configuration for the logging system.

    Per-event traces are emitted at DEBUG level and only show up when
    verbose is set.
    """
    log_to_console: bool = True
    log_to_file: bool = False
    log_file_path: str = "simulation.log"

    # Log format
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"

    # Detail level
    verbose: bool = False  # If True, logs every dispatched event


# =============================================================================
# DEFAULT INSTANCES
# =============================================================================

DEFAULT_SIMULATION_CONFIG = SimulationConfig()
DEFAULT_LOGGING_CONFIG = LoggingConfig()


# =============================================================================
# CONSTANTS
# =============================================================================

VERSION = "1.0.0"
APP_NAME = "Round Robin CPU Simulator"
