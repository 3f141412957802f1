# -*- coding: utf-8 -*-
"""
zipper_merge/utils.py

Utilities for the zipper merge simulation:
- Logger: stdout tee into a simulation log file
- SCRIPT_NAME / SCRIPT_VERSION: identifiers written into logs
- random_bounded_normal: trait sampling helper
- output_path: timestamped file names under outputs/
"""

import os
import sys
from datetime import datetime
from typing import Any, Dict, Optional

import numpy as np

# Script identification
SCRIPT_NAME = "zipper_merge"
SCRIPT_VERSION = f"{SCRIPT_NAME} 1.0"


class Logger:
    """
    Stdout tee for one simulation run.

    Everything printed while an instance is installed as ``sys.stdout``
    reaches the terminal and the run's log file. The file opens with the
    script version and the run settings so a log can be matched to its
    invocation later.
    """

    def __init__(self, filename: str, run_settings: Optional[Dict[str, Any]] = None,
                 script_name: str = SCRIPT_VERSION):
        self.terminal = sys.stdout
        self.filename = filename
        self.log = open(filename, 'w', encoding='utf-8', buffering=1)
        self.closed = False
        self.lines_written = 0
        self.log.write(f"{script_name} run started "
                       f"{datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n")
        for key, value in (run_settings or {}).items():
            if value is not None:
                self.log.write(f"  {key}: {value}\n")
        self.log.write("=" * 80 + "\n")
        self.flush()

    def write(self, message):
        if self.closed:
            return
        try:
            self.terminal.write(message)
        except (OSError, ValueError):
            pass  # Console may be gone; the log file still gets the message
        self.log.write(message)
        self.lines_written += message.count("\n")

    def flush(self):
        if self.closed:
            return
        try:
            self.terminal.flush()
        except (OSError, ValueError):
            pass
        self.log.flush()
        os.fsync(self.log.fileno())

    def close(self):
        if not self.closed:
            self.flush()
            self.closed = True
            self.log.close()


def random_bounded_normal(mean: float, std: float, low: float = 0.0, high: float = 1.0) -> float:
    """
    Sample a normal value clipped to [low, high].

    Args:
        mean: Distribution mean
        std: Standard deviation (0 returns the clipped mean)

    Returns:
        Sample in [low, high]
    """
    if std <= 0:
        return float(np.clip(mean, low, high))
    return float(np.clip(np.random.normal(mean, std), low, high))


def output_path(prefix: str, extension: str, tag: str = "") -> str:
    """
    Build ``outputs/<prefix>[_<TAG>]_<timestamp>.<extension>`` next to the package.

    The outputs/ directory is created if missing.
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    script_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    output_dir = os.path.join(script_dir, "outputs")
    os.makedirs(output_dir, exist_ok=True)
    name = f"{prefix}_{tag.upper()}_{timestamp}" if tag else f"{prefix}_{timestamp}"
    return os.path.join(output_dir, f"{name}.{extension}")
