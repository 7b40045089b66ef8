"""Host-facing CHIP-8 interpreter.

Wraps the functional core (``create_state``/``load_program``/``step``) in a
stateful object for host shells that poll input, call ``step`` once per tick
and draw the framebuffer in between.
"""

import enum

import jax
import jax.numpy as jnp
import numpy as np

from chix8.constants import (
    NUM_KEYS, STATUS_OK, STATUS_UNKNOWN_OPCODE, STATUS_STACK_OVERFLOW,
    STATUS_STACK_UNDERFLOW, STATUS_PC_OUT_OF_BOUNDS, FIRST_FATAL_STATUS
)
from chix8.state import EmulatorState, create_state
from chix8.emulator import step, run_steps, load_program, RomTooLargeError
from chix8.logging import ConsoleLogger


class StepOutcome(enum.IntEnum):
    """Result of one interpreter step."""
    OK = STATUS_OK
    UNKNOWN_OPCODE = STATUS_UNKNOWN_OPCODE
    STACK_OVERFLOW = STATUS_STACK_OVERFLOW
    STACK_UNDERFLOW = STATUS_STACK_UNDERFLOW
    PC_OUT_OF_BOUNDS = STATUS_PC_OUT_OF_BOUNDS

    @property
    def is_fatal(self) -> bool:
        return self >= FIRST_FATAL_STATUS


_jit_step = jax.jit(step)


def _word_at(state: EmulatorState, address: int) -> int:
    if address > len(state.memory) - 2:
        return 0
    return (int(state.memory[address]) << 8) | int(state.memory[address + 1])


class Chip8:
    """CHIP-8 machine driven by a host shell.

    Args:
        seed: Seed of the random generator used by CXNN
        logger: Logger receiving load and fault diagnostics
    """

    def __init__(self, seed: int = 0, logger: ConsoleLogger = None):
        self.seed = seed
        self.logger = logger or ConsoleLogger("Chip8")
        self.initialize()

    def initialize(self):
        """Reset the machine: memory zeroed, font loaded, PC at 0x200."""
        self.state = create_state(jax.random.PRNGKey(self.seed))
        self._keys = np.zeros(NUM_KEYS, dtype=np.bool_)
        self._presses = np.zeros(NUM_KEYS, dtype=np.bool_)

    def load_program(self, rom: bytes) -> bool:
        """Copy a ROM image to 0x200. Returns False, leaving memory as it was, if it does not fit."""
        try:
            self.state = load_program(self.state, rom)
        except RomTooLargeError as e:
            self.logger.error(str(e))
            return False
        self.logger.info(f"Loaded {len(rom)} byte program")
        return True

    def _key_snapshot(self) -> jnp.ndarray:
        # Keys pressed and released again since the last step still count as pressed once.
        snapshot = self._keys | self._presses
        self._presses[:] = False
        return jnp.asarray(snapshot)

    def step(self, elapsed: float) -> StepOutcome:
        """Run one fetch/decode/execute cycle and decay timers by ``elapsed`` seconds."""
        previous = self.state
        self.state = _jit_step(previous, elapsed, self._key_snapshot())
        outcome = StepOutcome(int(self.state.status))

        if outcome is StepOutcome.UNKNOWN_OPCODE and self.logger.is_enabled_for("WARNING"):
            pc = int(previous.pc)
            self.logger.warning(f"Unknown opcode {_word_at(previous, pc):04X} at 0x{pc:03X}")
        elif outcome.is_fatal and not bool(previous.halted):
            self.logger.error(
                f"{outcome.name} at PC 0x{int(previous.pc):03X}; interpreter halted"
            )
        return outcome

    def run(self, frames: int, elapsed: float, progress: bool = False) -> StepOutcome:
        """Step ``frames`` times with the keys currently held down.

        A key tapped since the last step counts as pressed for the first of
        these steps only.
        """
        was_halted = self.halted
        if frames > 0:
            self.state = _jit_step(self.state, elapsed, self._key_snapshot())
            self.state = run_steps(self.state, frames - 1, elapsed, jnp.asarray(self._keys),
                                   progress=progress)
        outcome = StepOutcome(int(self.state.status))
        if outcome.is_fatal and not was_halted:
            self.logger.error(f"{outcome.name}; interpreter halted at PC 0x{int(self.state.pc):03X}")
        return outcome

    def get_framebuffer(self) -> np.ndarray:
        """Copy of the (64, 32) boolean display, indexed [x, y]."""
        return np.array(self.state.display, dtype=np.bool_)

    def is_sound_active(self) -> bool:
        return bool(self.state.sound_timer > 0)

    def set_key_state(self, index: int, pressed: bool):
        """Record a key event for the next step."""
        if not 0 <= index < NUM_KEYS:
            raise ValueError(f"Key index must be in 0-{NUM_KEYS - 1}, got {index}")
        self._keys[index] = pressed
        if pressed:
            self._presses[index] = True

    @property
    def pc(self) -> int:
        return int(self.state.pc)

    @property
    def registers(self) -> np.ndarray:
        return np.array(self.state.V)

    @property
    def awaiting_key(self) -> bool:
        return bool(self.state.awaiting_key)

    @property
    def halted(self) -> bool:
        return bool(self.state.halted)
