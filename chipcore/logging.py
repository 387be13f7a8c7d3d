"""Console logging utilities for driving the CHIP-8 core.

This module provides a small logging system with callbacks for visibility into
the frame loop: a colour-aware console logger, callbacks notified on ROM load,
the ops each frame executed, every completed frame and every error, and a
frame runner with a tqdm progress bar.
"""

import sys
import time
from collections import Counter
from typing import Any, Callable, Dict, Iterable, List, Optional

from tqdm import tqdm

from chipcore.decode import Op


class ConsoleLogger:
    """Flexible console logger with level filtering and colours."""

    LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(
        self,
        name: str = "chipcore",
        log_level: str = "INFO",
        use_colors: bool = True,
        show_timestamps: bool = True,
        stream=None,
    ):
        if log_level.upper() not in self.LEVELS:
            raise ValueError(f"Unknown log level '{log_level}'. Available: {list(self.LEVELS)}")
        self.name = name
        self.log_level = log_level.upper()
        self.stream = stream if stream is not None else sys.stdout
        self.use_colors = (
            use_colors and hasattr(self.stream, "isatty") and self.stream.isatty()
        )
        self.show_timestamps = show_timestamps
        self.start_time = time.time()

    def _should_log(self, level: str) -> bool:
        """Check if message should be logged based on current log level."""
        return self.LEVELS.index(level.upper()) >= self.LEVELS.index(self.log_level)

    def _format_message(self, level: str, message: str) -> str:
        """Format log message with timestamp, level, and colors."""
        timestamp = (
            f"[{time.time() - self.start_time:8.2f}s]" if self.show_timestamps else ""
        )
        level_str = f"[{level:>8s}]"
        if self.use_colors:
            level_str = f"{self.COLORS[level]}{level_str}{self.RESET}"

        return f"{timestamp}{level_str}[{self.name}] {message}"

    def log(self, level: str, message: str):
        """Log a message at the specified level."""
        level = level.upper()
        if self._should_log(level):
            print(self._format_message(level, message), file=self.stream, flush=True)

    def debug(self, message: str):
        self.log("DEBUG", message)

    def info(self, message: str):
        self.log("INFO", message)

    def warning(self, message: str):
        self.log("WARNING", message)

    def error(self, message: str):
        self.log("ERROR", message)

    def critical(self, message: str):
        self.log("CRITICAL", message)


class FrameCallback:
    """Base class for machine callbacks. Every hook is optional."""

    def on_load(self, machine, size: int):
        pass

    def on_executed(self, machine, op_counts: Dict[Op, int], elapsed_us: int):
        """Called after every frame, failed ones included, with what ran."""
        pass

    def on_frame(self, machine, instructions: int, elapsed_us: int):
        pass

    def on_error(self, machine, error: Exception):
        pass


class ConsoleCallback(FrameCallback):
    """Logs a frame summary every `log_interval` frames."""

    def __init__(self, log_interval: int = 60, logger: Optional[ConsoleLogger] = None):
        self.log_interval = log_interval
        self.logger = logger or ConsoleLogger("frames")

    def on_load(self, machine, size: int):
        self.logger.info(f"Loaded {size}-byte program")

    def on_frame(self, machine, instructions: int, elapsed_us: int):
        if machine.frame_count % self.log_interval == 0:
            self.logger.info(
                f"Frame {machine.frame_count:6d} | {instructions:4d} instructions | "
                f"{elapsed_us:6d}us | PC=0x{machine.pc:03X} | tone={'on' if machine.tone else 'off'}"
            )

    def on_error(self, machine, error: Exception):
        self.logger.error(f"Frame {machine.frame_count} aborted: {error}")


class MetricsCallback(FrameCallback):
    """Callback for counting executed instructions and emulated time."""

    def __init__(self):
        self.op_counts: Counter = Counter()
        self.frame_instructions: List[int] = []
        self.total_cost = 0
        self.errors: List[Exception] = []

    def on_executed(self, machine, op_counts: Dict[Op, int], elapsed_us: int):
        self.op_counts.update(op_counts)
        self.total_cost += elapsed_us

    def on_frame(self, machine, instructions: int, elapsed_us: int):
        self.frame_instructions.append(instructions)

    def on_error(self, machine, error: Exception):
        self.errors.append(error)

    def get_statistics(self) -> Dict[str, Any]:
        """Get running statistics over everything seen so far."""
        frames = self.frame_instructions
        stats: Dict[str, Any] = {
            "frames": len(frames),
            "instructions": sum(self.op_counts.values()),
            "emulated_us": self.total_cost,
            "errors": len(self.errors),
            "ops": {op.name: count for op, count in self.op_counts.most_common()},
        }
        if frames:
            stats["instructions_per_frame"] = {
                "mean": sum(frames) / len(frames),
                "min": min(frames),
                "max": max(frames),
                "last": frames[-1],
            }
        return stats

    def most_common(self, n: int = 5) -> List[tuple]:
        return [(Op(op), count) for op, count in self.op_counts.most_common(n)]


def run_frames(
    machine,
    num_frames: int,
    keypad_fn: Optional[Callable[[int], int]] = None,
    progress: bool = True,
    desc: str = "Emulating",
) -> int:
    """Drive `machine` for `num_frames` frames behind a tqdm progress bar.

    Args:
        machine: A loaded :class:`chipcore.machine.Machine`
        num_frames: Number of frames to run
        keypad_fn: Maps the frame index to the keypad mask for that frame.
            Defaults to no key held.
        progress: Whether to display the progress bar
        desc: Progress bar description

    Returns:
        Number of frames completed. Errors propagate after the bar is closed.
    """
    if keypad_fn is None:
        keypad_fn = lambda _: 0

    completed = 0
    with tqdm(total=num_frames, desc=desc, unit="frame", disable=not progress) as bar:
        for frame in range(num_frames):
            machine.run_frame(keypad_fn(frame))
            completed += 1
            bar.update(1)
            bar.set_postfix(pc=f"0x{machine.pc:03X}", refresh=False)
    return completed


def notify(callbacks: Iterable[FrameCallback], hook: str, *args):
    """Call `hook` on every callback."""
    for callback in callbacks:
        getattr(callback, hook)(*args)
