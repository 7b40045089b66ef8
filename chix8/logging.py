"""Console logging and progress reporting for the CHIP-8 interpreter.

``ConsoleLogger`` prints levelled diagnostics from the interpreter and the
host shell. ``scan_with_progress`` drives a tqdm bar from inside a jitted
``lax.scan`` through ``io_callback``.
"""

import sys
import time
from typing import Callable, Optional, TextIO

import jax
from jax.experimental import io_callback
from tqdm import tqdm

LEVELS = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40, "CRITICAL": 50}

_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
_RESET = "\033[0m"


class ConsoleLogger:
    """Levelled console logger.

    Lines read ``[   1.25s][ WARNING][Chip8] Unknown opcode 0123 at 0x200``.

    Args:
        name: Tag printed on every line
        log_level: Lowest level that is printed, one of ``LEVELS``
        use_colors: Colour the level tag when the stream is a terminal
        show_timestamps: Prefix lines with seconds since the logger was built
        stream: Output stream, standard output when not given
    """

    def __init__(
        self,
        name: str = "chix8",
        log_level: str = "INFO",
        use_colors: bool = True,
        show_timestamps: bool = True,
        stream: Optional[TextIO] = None,
    ):
        level = str(log_level).upper()
        if level not in LEVELS:
            raise ValueError(f"Unknown log level '{log_level}'. Available: {list(LEVELS)}")

        self.name = name
        self.log_level = level
        self.stream = stream
        target = stream if stream is not None else sys.stdout
        self.use_colors = use_colors and hasattr(target, "isatty") and target.isatty()
        self.show_timestamps = show_timestamps
        self.start_time = time.time()

    def is_enabled_for(self, level: str) -> bool:
        return LEVELS[level] >= LEVELS[self.log_level]

    def _format_message(self, level: str, message: str) -> str:
        timestamp = f"[{time.time() - self.start_time:8.2f}s]" if self.show_timestamps else ""
        level_str = f"[{level:>8s}]"
        if self.use_colors:
            level_str = f"{_COLORS[level]}{level_str}{_RESET}"
        return f"{timestamp}{level_str}[{self.name}] {message}"

    def log(self, level: str, message: str):
        level = level.upper()
        if self.is_enabled_for(level):
            # Resolved per call so redirected or captured stdout is honoured.
            stream = self.stream if self.stream is not None else sys.stdout
            print(self._format_message(level, message), file=stream, flush=True)

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


def scan_with_progress(n: int, desc: Optional[str] = None, print_rate: Optional[int] = None) -> Callable:
    """Wrap a ``lax.scan`` body so a tqdm bar follows its iteration counter.

    The scanned sequence must be ``jnp.arange(n)``. The bar opens on the
    first iteration, advances every ``print_rate`` iterations and closes on
    the last one.
    """
    if print_rate is None:
        print_rate = max(1, min(n // 20, 50))
    bars = {}

    def _open():
        bars["bar"] = tqdm(total=n, desc=desc or f"Running {n:,} steps", unit="step")

    def _advance(done):
        bar = bars["bar"]
        bar.update(int(done) - bar.n)

    def _close():
        bars.pop("bar").close()

    def _report(iter_num):
        done = iter_num + 1
        jax.lax.cond(
            iter_num == 0,
            lambda _: io_callback(_open, None, ordered=True),
            lambda _: None,
            operand=None,
        )
        jax.lax.cond(
            (done % print_rate == 0) | (done == n),
            lambda _: io_callback(_advance, None, done, ordered=True),
            lambda _: None,
            operand=None,
        )
        jax.lax.cond(
            done == n,
            lambda _: io_callback(_close, None, ordered=True),
            lambda _: None,
            operand=None,
        )

    def _scan_progress_decorator(func):
        def wrapper_with_progress(carry, iter_num):
            _report(iter_num)
            return func(carry, iter_num)

        return wrapper_with_progress

    return _scan_progress_decorator
