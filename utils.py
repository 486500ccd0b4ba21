"""
Utility Module for the Round Robin CPU Simulator

Logging setup and result export helpers shared by the CLI and the tests.
"""

from pathlib import Path
from typing import Any, Dict, Union
import json
import logging

from config import LoggingConfig, DEFAULT_LOGGING_CONFIG


def setup_logging(config: LoggingConfig = None) -> logging.Logger:
    """
    Configure the root logger from a LoggingConfig.

    Existing handlers are replaced so repeated calls do not duplicate output.

    Returns:
        The application logger
    """
    config = config or DEFAULT_LOGGING_CONFIG
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(config.log_format, datefmt=config.date_format)
    if config.log_to_console:
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        root.addHandler(console)
    if config.log_to_file:
        file_handler = logging.FileHandler(config.log_file_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    root.setLevel(logging.DEBUG if config.verbose else logging.INFO)
    return logging.getLogger("round_robin")


class DataExporter:
    """Writes simulation results to JSON files."""

    @staticmethod
    def to_json(data: Dict[str, Any]) -> str:
        return json.dumps(data, indent=2, sort_keys=True)

    @classmethod
    def export_json(cls, data: Dict[str, Any], path: Union[str, Path]) -> Path:
        """
        Write a result dictionary to `path`, creating parent directories.

        Returns:
            The path written
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(cls.to_json(data), encoding="utf-8")
        logging.getLogger(__name__).info(f"Results exported to {path}")
        return path

    @staticmethod
    def load_json(path: Union[str, Path]) -> Dict[str, Any]:
        return json.loads(Path(path).read_text(encoding="utf-8"))
