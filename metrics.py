"""
Metrics Module for the Round Robin CPU Simulator

Holds the Statistics aggregate that the CPU, memory and I/O units and the
processes themselves update as the simulation runs, and turns it into a
summary at the end of a run.

Counters fall in two groups:
- Flushed by completed processes (Process.update_statistics): the five time
  totals and the two queue-entry counters. Processes still in the system when
  the run ends do not contribute to these.
- Maintained live by the units: queue-length integrals and maxima, CPU busy
  and idle time, process switches, I/O operations, ready-queue insertions.
"""

from dataclasses import dataclass, field, asdict
from typing import Dict, Any, List

import numpy as np


@dataclass
class Statistics:
    """Mutable aggregate of counters and sums for one simulation run."""

    nof_created_processes: int = 0
    nof_completed_processes: int = 0

    # Flushed by completed processes
    total_time_spent_waiting_for_memory: int = 0
    total_time_spent_in_ready_queue: int = 0
    total_time_spent_in_cpu: int = 0
    total_time_spent_waiting_for_io: int = 0
    total_time_spent_in_io: int = 0
    total_nof_times_in_ready_queue: int = 0
    total_nof_times_in_io_queue: int = 0
    turnaround_times: List[int] = field(default_factory=list)

    # CPU
    nof_ready_queue_insertions: int = 0
    nof_process_switches: int = 0
    total_busy_cpu_time: int = 0
    total_idle_cpu_time: int = 0
    cpu_queue_length_time: int = 0
    cpu_queue_largest_length: int = 0

    # Memory
    memory_queue_length_time: int = 0
    memory_queue_largest_length: int = 0

    # I/O
    nof_processed_io_operations: int = 0
    io_queue_length_time: int = 0
    io_queue_largest_length: int = 0

    def total_accounted_time(self) -> int:
        """Sum of the five per-process time totals flushed so far."""
        return (self.total_time_spent_waiting_for_memory
                + self.total_time_spent_in_ready_queue
                + self.total_time_spent_in_cpu
                + self.total_time_spent_waiting_for_io
                + self.total_time_spent_in_io)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def summary(self, simulation_length: int) -> Dict[str, float]:
        """
        Derive averages and utilization figures.

        Args:
            simulation_length: Simulated time the run covered

        Returns:
            Dictionary of derived metrics; per-process averages are 0.0 when
            no process completed
        """
        length = max(1, simulation_length)
        completed = self.nof_completed_processes

        def per_process(total: int) -> float:
            return total / completed if completed else 0.0

        turnaround = np.asarray(self.turnaround_times, dtype=float)
        return {
            'simulation_length': simulation_length,
            'throughput_per_second': completed * 1000.0 / length,
            'cpu_utilization': self.total_busy_cpu_time / length,
            'avg_cpu_queue_length': self.cpu_queue_length_time / length,
            'avg_memory_queue_length': self.memory_queue_length_time / length,
            'avg_io_queue_length': self.io_queue_length_time / length,
            'avg_time_waiting_for_memory': per_process(self.total_time_spent_waiting_for_memory),
            'avg_time_in_ready_queue': per_process(self.total_time_spent_in_ready_queue),
            'avg_time_in_cpu': per_process(self.total_time_spent_in_cpu),
            'avg_time_waiting_for_io': per_process(self.total_time_spent_waiting_for_io),
            'avg_time_in_io': per_process(self.total_time_spent_in_io),
            'avg_times_in_ready_queue': per_process(self.total_nof_times_in_ready_queue),
            'avg_times_in_io_queue': per_process(self.total_nof_times_in_io_queue),
            'avg_turnaround_time': float(np.mean(turnaround)) if turnaround.size else 0.0,
            'median_turnaround_time': float(np.median(turnaround)) if turnaround.size else 0.0,
            'p95_turnaround_time': float(np.percentile(turnaround, 95)) if turnaround.size else 0.0,
        }

    def format_report(self, simulation_length: int) -> str:
        """Render a human-readable report of the run."""
        s = self.summary(simulation_length)
        lines = [
            f"Simulated time:                         {simulation_length} ms",
            f"Number of created processes:            {self.nof_created_processes}",
            f"Number of (forced) process switches:    {self.nof_process_switches}",
            f"Number of processed I/O operations:     {self.nof_processed_io_operations}",
            f"Number of completed processes:          {self.nof_completed_processes}",
            f"Throughput (processes per second):      {s['throughput_per_second']:.3f}",
            "",
            f"CPU utilization:                        {s['cpu_utilization'] * 100:.1f}%",
            f"Total CPU time spent processing:        {self.total_busy_cpu_time} ms",
            f"Total CPU time spent idle:              {self.total_idle_cpu_time} ms",
            "",
            f"Largest occurring memory queue length:  {self.memory_queue_largest_length}",
            f"Average memory queue length:            {s['avg_memory_queue_length']:.3f}",
            f"Largest occurring CPU queue length:     {self.cpu_queue_largest_length}",
            f"Average CPU queue length:               {s['avg_cpu_queue_length']:.3f}",
            f"Largest occurring I/O queue length:     {self.io_queue_largest_length}",
            f"Average I/O queue length:               {s['avg_io_queue_length']:.3f}",
            "",
            "Per completed process:",
            f"  Average times placed in CPU queue:    {s['avg_times_in_ready_queue']:.3f}",
            f"  Average times placed in I/O queue:    {s['avg_times_in_io_queue']:.3f}",
            f"  Average time waiting for memory:      {s['avg_time_waiting_for_memory']:.1f} ms",
            f"  Average time in CPU queue:            {s['avg_time_in_ready_queue']:.1f} ms",
            f"  Average time processing:              {s['avg_time_in_cpu']:.1f} ms",
            f"  Average time waiting for I/O:         {s['avg_time_waiting_for_io']:.1f} ms",
            f"  Average time performing I/O:          {s['avg_time_in_io']:.1f} ms",
            f"  Turnaround mean / median / p95:       "
            f"{s['avg_turnaround_time']:.1f} / {s['median_turnaround_time']:.1f} / "
            f"{s['p95_turnaround_time']:.1f} ms",
        ]
        return "\n".join(lines)
