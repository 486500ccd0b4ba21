"""
Validators Module for the Round Robin CPU Simulator

Exception hierarchy, runtime guards and configuration checks.

Two kinds of failure are distinguished:
- Broken invariants at run time (a clock running backwards, a process asked
  to leave a queue it is not in) are defects in the driver and raise at once.
- Bad configuration is user input; every problem is collected into a
  ValidationResult so the CLI can report them together.
"""

import logging
from typing import Any, Iterable, List, Optional
from dataclasses import dataclass, field

from config import SimulationConfig


logger = logging.getLogger(__name__)


# =============================================================================
# EXCEPTIONS
# =============================================================================

class ValidationError(Exception):
    """
    Root of all simulator errors.

    Attributes:
        message: What went wrong
        field: Name of the offending parameter or attribute, if known
        value: The offending value, if known
    """

    def __init__(self, message: str, field: str = None, value: Any = None):
        self.message = message
        self.field = field
        self.value = value
        super().__init__(self._describe())

    def _describe(self) -> str:
        if self.field is None:
            return self.message
        if self.value is None:
            return f"{self.field}: {self.message}"
        return f"{self.field}={self.value!r}: {self.message}"


class ConfigurationError(ValidationError):
    """Raised when a SimulationConfig cannot be used for a run."""
    pass


class ProcessError(ValidationError):
    """A process was asked to do something its timing state forbids."""
    pass


class ClockError(ProcessError):
    """A transition was given a clock that would drop or reverse accounted time."""
    pass


class SimulationError(ValidationError):
    """The driver or one of its units reached an inconsistent state."""
    pass


class StateTransitionError(ValidationError):
    """A process was moved out of a state it is not in."""

    def __init__(self, current_state: Any, target_state: Any, entity: str = "Process"):
        self.current_state = current_state
        self.target_state = target_state
        current = getattr(current_state, "name", current_state)
        target = getattr(target_state, "name", target_state)
        super().__init__(f"cannot move from {current} to {target}", f"{entity}.state")


# =============================================================================
# VALIDATION RESULT
# =============================================================================

@dataclass
class ValidationResult:
    """Errors and warnings collected while checking a configuration."""
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.is_valid

    @staticmethod
    def success() -> 'ValidationResult':
        return ValidationResult()

    @staticmethod
    def failure(error: str) -> 'ValidationResult':
        return ValidationResult(is_valid=False, errors=[error])

    def add_error(self, error: str):
        self.errors.append(error)
        self.is_valid = False

    def add_warning(self, warning: str):
        self.warnings.append(warning)

    def merge(self, other: 'ValidationResult') -> 'ValidationResult':
        """Fold another result into this one and return self."""
        for error in other.errors:
            self.add_error(error)
        for warning in other.warnings:
            self.add_warning(warning)
        return self


# =============================================================================
# CONFIGURATION CHECKS
# =============================================================================

class ConfigValidator:
    """
    Checks a SimulationConfig before a run.

    Integer parameters are range-checked here; the relations between the
    demand bounds are left to SimulationConfig.validate().
    """

    MIN_MEMORY_SIZE = 404
    MAX_MEMORY_SIZE = 1 << 30
    MIN_TIME_QUANTUM = 1
    MAX_TIME_QUANTUM = 100000

    POSITIVE_FIELDS = ("avg_io_time", "avg_arrival_interval", "simulation_length")

    @classmethod
    def validate_config(cls, config: SimulationConfig) -> ValidationResult:
        """
        Check every parameter of a configuration.

        Args:
            config: Configuration about to be used for a run

        Returns:
            ValidationResult holding every error and warning found
        """
        result = ValidationResult.success()
        result.merge(cls.validate_int_range(
            config.memory_size, "memory_size", cls.MIN_MEMORY_SIZE, cls.MAX_MEMORY_SIZE))
        result.merge(cls.validate_int_range(
            config.time_quantum, "time_quantum", cls.MIN_TIME_QUANTUM, cls.MAX_TIME_QUANTUM))
        for name in cls.POSITIVE_FIELDS:
            result.merge(cls.validate_int_range(getattr(config, name), name, 1))
        if config.seed is not None and not isinstance(config.seed, int):
            result.add_error(f"seed must be an integer or None, got {type(config.seed).__name__}")

        if not result:
            return result

        try:
            config.validate()
        except ValueError as e:
            result.add_error(str(e))
            return result

        if config.time_quantum >= config.max_cpu_time:
            result.add_warning(
                f"time_quantum ({config.time_quantum}) is not below max_cpu_time "
                f"({config.max_cpu_time}); every process runs to completion or I/O"
            )
        if config.avg_arrival_interval > config.simulation_length:
            result.add_warning(
                "avg_arrival_interval exceeds simulation_length; very few processes will arrive"
            )
        return result

    @classmethod
    def validate_int_range(cls, value: Any, name: str, min_val: int,
                           max_val: Optional[int] = None) -> ValidationResult:
        """Check that `value` is an int in [min_val, max_val]."""
        if isinstance(value, bool) or not isinstance(value, int):
            return ValidationResult.failure(
                f"{name} must be an integer, got {type(value).__name__}")
        if value < min_val:
            return ValidationResult.failure(f"{name} must be at least {min_val}, got {value}")
        if max_val is not None and value > max_val:
            return ValidationResult.failure(f"{name} must be at most {max_val}, got {value}")
        return ValidationResult.success()

    @classmethod
    def validate_or_raise(cls, config: SimulationConfig) -> SimulationConfig:
        """
        Raises:
            ConfigurationError: Listing every error found
        """
        result = cls.validate_config(config)
        log_validation_result(result, "config")
        if not result:
            raise ConfigurationError("; ".join(result.errors))
        return config


# =============================================================================
# RUNTIME GUARDS
# =============================================================================

def require_positive(value: int, name: str) -> int:
    """Return `value` if it is a positive int, else raise ValidationError."""
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValidationError("must be a positive integer", name, value)
    return value


def require_clock(clock: int, last_event: int, name: str = "clock") -> int:
    """
    Returns:
        The time elapsed since last_event

    Raises:
        ClockError: If the clock is earlier than last_event
    """
    if clock < last_event:
        raise ClockError(f"clock moved backwards (last event at {last_event})", name, clock)
    return clock - last_event


def require_state(obj: Any, valid_states: Iterable[Any], target: Any,
                  name: str = "Process") -> Any:
    """Raise StateTransitionError unless obj.state is one of valid_states."""
    current = getattr(obj, 'state', None)
    if current not in valid_states:
        raise StateTransitionError(current, target, name)
    return obj


def log_validation_result(result: ValidationResult, context: str = ""):
    prefix = f"[{context}] " if context else ""
    for error in result.errors:
        logger.error(f"{prefix}{error}")
    for warning in result.warnings:
        logger.warning(f"{prefix}{warning}")
    if result:
        logger.debug(f"{prefix}validation passed")
