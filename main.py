#!/usr/bin/env python3
"""
Round Robin CPU Simulator - Main Entry Point

Runs one discrete-event simulation of a single CPU scheduled with Round
Robin, together with a memory-admission unit and an I/O device, and prints
the collected statistics.

Usage:
    python main.py                          # Run with default parameters
    python main.py --quantum 250 --seed 7   # Shorter time slice, reproducible
    python main.py --config run.json --export results.json
"""

import sys
import argparse
from typing import List, Optional

from config import (
    SimulationConfig,
    LoggingConfig,
    VERSION,
    APP_NAME
)
from simulation import SimulationEngine
from utils import setup_logging, DataExporter
from validators import ConfigurationError


def print_banner():
    """Print application banner."""
    title = f"{APP_NAME} v{VERSION}"
    print("=" * 60)
    print(title.center(60))
    print("=" * 60)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=f"{APP_NAME} v{VERSION}",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py                         Run with default parameters
  python main.py --quantum 100 --seed 1  Reproducible run with a 100 ms slice
  python main.py --export out.json       Also write results as JSON
        """
    )

    parser.add_argument('--version', action='version', version=f'{APP_NAME} v{VERSION}')
    parser.add_argument('--config', '-c', help='JSON file with simulation parameters')
    parser.add_argument('--memory-size', '-m', type=int, help='Memory size in kB (default: 2048)')
    parser.add_argument('--quantum', '-q', type=int, help='Round Robin time slice in ms (default: 500)')
    parser.add_argument('--avg-io-time', '-i', type=int,
                        help='Average I/O operation time in ms (default: 225)')
    parser.add_argument('--avg-arrival-interval', '-a', type=int,
                        help='Average time between process arrivals in ms (default: 5000)')
    parser.add_argument('--length', '-l', type=int, dest='simulation_length',
                        help='Simulated time in ms (default: 250000)')
    parser.add_argument('--seed', '-s', type=int, help='Random seed for a reproducible run')
    parser.add_argument('--export', '-e', help='Write results to this JSON file')
    parser.add_argument('--verbose', '-v', action='store_true', help='Log every dispatched event')
    parser.add_argument('--log-file', help='Also write the log to this file')
    return parser


def config_from_args(args: argparse.Namespace) -> SimulationConfig:
    """Merge a JSON config file (if any) with explicit command-line overrides."""
    if args.config:
        config = SimulationConfig.from_dict(DataExporter.load_json(args.config))
    else:
        config = SimulationConfig()

    overrides = {
        'memory_size': args.memory_size,
        'time_quantum': args.quantum,
        'avg_io_time': args.avg_io_time,
        'avg_arrival_interval': args.avg_arrival_interval,
        'simulation_length': args.simulation_length,
        'seed': args.seed,
    }
    for key, value in overrides.items():
        if value is not None:
            setattr(config, key, value)
    return config


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the application.

    Returns:
        Process exit code: 0 on success, 2 on an invalid configuration
    """
    args = build_parser().parse_args(argv)

    logger = setup_logging(LoggingConfig(
        verbose=args.verbose,
        log_to_file=bool(args.log_file),
        log_file_path=args.log_file or LoggingConfig.log_file_path
    ))

    config = config_from_args(args)
    engine = SimulationEngine(config)
    try:
        engine.initialize()
    except ConfigurationError as e:
        logger.error(str(e))
        return 2

    print_banner()
    print(f"  Memory size:            {config.memory_size} kB")
    print(f"  Time quantum:           {config.time_quantum} ms")
    print(f"  Average I/O time:       {config.avg_io_time} ms")
    print(f"  Average arrival time:   {config.avg_arrival_interval} ms")
    print(f"  Simulation length:      {config.simulation_length} ms")
    print("-" * 60)

    result = engine.run()
    print(result.statistics.format_report(result.total_time))
    print("-" * 60)
    logger.info(f"{result.events_processed} events processed in "
                f"{result.execution_duration:.3f} s")

    if args.export:
        DataExporter.export_json(result.to_dict(), args.export)
    return 0


if __name__ == "__main__":
    sys.exit(main())
