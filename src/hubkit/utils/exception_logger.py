"""Centralized exception logger for HubKit.

Records failures of CLI commands with enough context to debug them later:
- Timestamp and process ID-based log file names
- Complete stack traces
- Command context (for git operations)
"""

import json
import os
import traceback
from datetime import datetime
from pathlib import Path
from typing import Optional, Dict, Any


class ExceptionLogger:
    """Centralized exception logging facility.

    The log file lives in ``<project>/.hubkit/`` and is only created once the
    first exception is written.
    """

    _instance: Optional["ExceptionLogger"] = None
    log_file_path: Optional[Path] = None

    def __init__(self, log_file_path: Path):
        self.log_file_path = log_file_path

    @classmethod
    def initialize(cls, project_root: Path) -> "ExceptionLogger":
        """Initialize the global exception logger (idempotent singleton).

        Tests should reset ``cls._instance = None`` when they need a fresh
        instance.

        Args:
            project_root: Root directory of the project

        Returns:
            Initialized ExceptionLogger instance
        """
        if cls._instance is not None:
            return cls._instance

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file_path = (
            project_root / ".hubkit" / f"error_{timestamp}_{os.getpid()}.log"
        )

        cls._instance = cls(log_file_path)
        return cls._instance

    @classmethod
    def get_instance(cls) -> Optional["ExceptionLogger"]:
        return cls._instance

    def log_exception(
        self,
        exception: BaseException,
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Log an exception with full context.

        Args:
            exception: The exception to log
            context: Additional context data to include in log (optional)
        """
        if not self.log_file_path:
            return

        log_entry = {
            "timestamp": datetime.now().isoformat(),
            "exception_type": type(exception).__name__,
            "exception_message": str(exception),
            "stack_trace": "".join(
                traceback.format_exception(
                    type(exception), exception, exception.__traceback__
                )
            ),
            "context": context or {},
        }

        self.log_file_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.log_file_path, "a") as f:
            f.write(json.dumps(log_entry, indent=2))
            f.write("\n---\n")
