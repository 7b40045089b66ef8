"""CHIP-8 emulator state structures."""

import jax
import jax.numpy as jnp
from flax.struct import PyTreeNode, field

from chix8.constants import (
    PROGRAM_START, FONT_START, FONT_DATA, MEMORY_SIZE, SCREEN_WIDTH, SCREEN_HEIGHT,
    STACK_SIZE, NUM_REGISTERS, NUM_KEYS, STATUS_OK, FIRST_FATAL_STATUS
)


def _zeros(shape, dtype):
    return field(default_factory=lambda: jnp.zeros(shape, dtype=dtype))


class StackState(PyTreeNode):
    """Stack state for subroutine calls."""
    data: jnp.ndarray = _zeros(STACK_SIZE, jnp.uint16)
    pointer: jnp.ndarray = _zeros((), jnp.int32)


class EmulatorState(PyTreeNode):
    """Main CHIP-8 emulator state."""
    rng: jax.random.PRNGKey
    memory: jnp.ndarray = _zeros(MEMORY_SIZE, jnp.uint8)
    pc: jnp.ndarray = field(default_factory=lambda: jnp.asarray(PROGRAM_START, dtype=jnp.uint16))
    display: jnp.ndarray = _zeros((SCREEN_WIDTH, SCREEN_HEIGHT), jnp.bool_)
    stack: StackState = field(default_factory=StackState)
    delay_timer: jnp.ndarray = _zeros((), jnp.uint8)
    sound_timer: jnp.ndarray = _zeros((), jnp.uint8)
    timer_remainder: jnp.ndarray = _zeros((), jnp.float32)  # Fractional 60 Hz ticks
    keypad: jnp.ndarray = _zeros(NUM_KEYS, jnp.bool_)
    awaiting_key: jnp.ndarray = _zeros((), jnp.bool_)
    key_register: jnp.ndarray = _zeros((), jnp.uint8)
    V: jnp.ndarray = _zeros(NUM_REGISTERS, jnp.uint8)
    I: jnp.ndarray = _zeros((), jnp.uint16)
    status: jnp.ndarray = field(default_factory=lambda: jnp.asarray(STATUS_OK, dtype=jnp.uint8))

    @property
    def halted(self) -> jnp.ndarray:
        """True once a fatal fault has stopped the interpreter."""
        return self.status >= FIRST_FATAL_STATUS

    def with_status(self, status: int) -> "EmulatorState":
        return self.replace(status=jnp.asarray(status, dtype=jnp.uint8))


def create_state(rng: jax.random.PRNGKey = None) -> EmulatorState:
    """Create initial emulator state with font data loaded."""
    if rng is None:
        rng = jax.random.PRNGKey(0)
    state = EmulatorState(rng)
    font = jnp.array(FONT_DATA, dtype=jnp.uint8)
    return state.replace(memory=state.memory.at[FONT_START:FONT_START + len(FONT_DATA)].set(font))
