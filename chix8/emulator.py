"""Main CHIP-8 emulator execution engine."""

from functools import partial

import jax
import jax.lax
import jax.numpy as jnp
import numpy as np

from chix8.state import EmulatorState
from chix8.decode import decode
from chix8.constants import (
    PROGRAM_START, MAX_PROGRAM_SIZE, MEMORY_SIZE, TIMER_FREQUENCY, STATUS_OK,
    STATUS_PC_OUT_OF_BOUNDS
)
from chix8.instructions.system import execute_system_instruction
from chix8.instructions.control_flow import (
    execute_jump, execute_call, execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate, execute_skip_if_equal_register,
    execute_skip_if_not_equal_register, execute_jump_with_offset, execute_skip_if_key
)
from chix8.instructions.alu import execute_alu_operation
from chix8.instructions.memory import execute_set, execute_add, execute_set_index, execute_random
from chix8.instructions.display import execute_display
from chix8.instructions.misc import execute_misc_instruction
from chix8.logging import scan_with_progress


class RomTooLargeError(ValueError):
    """ROM image does not fit in program memory."""

    def __init__(self, size: int):
        super().__init__(
            f"ROM is {size} bytes but only {MAX_PROGRAM_SIZE} bytes of program memory are available"
        )
        self.size = size


def execute(state: EmulatorState, instruction: int) -> EmulatorState:
    """Execute single CHIP-8 instruction."""
    decoded_instruction = decode(jnp.asarray(instruction, dtype=jnp.uint16))

    return jax.lax.switch(
        decoded_instruction.opcode,
        [
            execute_system_instruction,
            execute_jump,
            execute_call,
            execute_skip_if_equal_immediate,
            execute_skip_if_not_equal_immediate,
            execute_skip_if_equal_register,
            execute_set,
            execute_add,
            execute_alu_operation,
            execute_skip_if_not_equal_register,
            execute_set_index,
            execute_jump_with_offset,
            execute_random,
            execute_display,
            execute_skip_if_key,
            execute_misc_instruction,
        ],
        state, decoded_instruction
    )


def _pack_u16(high: jnp.uint8, low: jnp.uint8) -> jnp.uint16:
    """Pack two bytes into uint16."""
    return (high.astype(jnp.uint16) << 8) | low.astype(jnp.uint16)


def fetch(state: EmulatorState) -> tuple[EmulatorState, jnp.uint16]:
    """Fetch next instruction from memory."""
    instruction = _pack_u16(state.memory[state.pc], state.memory[state.pc + 1])
    return state.replace(pc=state.pc + 2), instruction


def tick_timers(state: EmulatorState, elapsed: float) -> EmulatorState:
    """Count both timers down at 60 Hz for ``elapsed`` seconds, never below zero."""
    elapsed = jnp.maximum(jnp.asarray(elapsed, dtype=jnp.float32), 0.0)
    total = state.timer_remainder + elapsed * TIMER_FREQUENCY
    ticks = jnp.floor(total)
    whole_ticks = jnp.astype(jnp.minimum(ticks, 255.0), jnp.int32)

    def countdown(timer):
        return jnp.astype(jnp.maximum(jnp.astype(timer, jnp.int32) - whole_ticks, 0), jnp.uint8)

    return state.replace(
        delay_timer=countdown(state.delay_timer),
        sound_timer=countdown(state.sound_timer),
        timer_remainder=jnp.astype(total - ticks, jnp.float32)
    )


def _cycle(state: EmulatorState) -> EmulatorState:
    """Fetch, decode and execute one instruction."""
    def _fetch_execute(state):
        state, instruction = fetch(state)
        return execute(state, instruction)

    return jax.lax.cond(
        state.pc > MEMORY_SIZE - 2,
        lambda state: state.with_status(STATUS_PC_OUT_OF_BOUNDS),
        _fetch_execute,
        state
    )


def _resolve_key_wait(state: EmulatorState, new_presses: jnp.ndarray) -> EmulatorState:
    """Finish a pending FX0A once a key goes down."""
    pressed = jnp.any(new_presses)
    key = jnp.astype(jnp.argmax(new_presses), jnp.uint8)
    return state.replace(
        V=jnp.where(pressed, state.V.at[state.key_register].set(key), state.V),
        awaiting_key=state.awaiting_key & ~pressed
    )


def step(state: EmulatorState, elapsed: float, keypad: jnp.ndarray) -> EmulatorState:
    """Advance the machine by one cycle.

    Stores the key snapshot, decays the timers by ``elapsed`` seconds and
    either executes the next instruction or, while an FX0A is pending, waits
    for a key that was not already held on the previous step. The outcome
    is left in ``state.status``; a halted state is returned unchanged.
    """
    keypad = jnp.asarray(keypad, dtype=jnp.bool_)

    def _run(state):
        new_presses = keypad & ~state.keypad
        state = state.replace(keypad=keypad).with_status(STATUS_OK)
        state = tick_timers(state, elapsed)
        return jax.lax.cond(
            state.awaiting_key,
            lambda state: _resolve_key_wait(state, new_presses),
            _cycle,
            state
        )

    return jax.lax.cond(state.halted, lambda state: state, _run, state)


@partial(jax.jit, static_argnames=("n", "progress"))
def run_steps(state: EmulatorState, n: int, elapsed: float, keypad: jnp.ndarray,
              progress: bool = False) -> EmulatorState:
    """Run ``n`` steps with a fixed frame interval and key snapshot."""
    def run_step(state, _):
        return step(state, elapsed, keypad), None

    if progress:
        run_step = scan_with_progress(n, desc=f"Running {n:,} steps")(run_step)

    state, _ = jax.lax.scan(run_step, state, jnp.arange(n))
    return state


def load_program(state: EmulatorState, rom: bytes) -> EmulatorState:
    """Load ROM data into CHIP-8 memory starting at 0x200."""
    if len(rom) > MAX_PROGRAM_SIZE:
        raise RomTooLargeError(len(rom))
    rom_array = jnp.asarray(np.frombuffer(bytes(rom), dtype=np.uint8))
    new_memory = state.memory.at[PROGRAM_START:PROGRAM_START + len(rom)].set(rom_array)
    return state.replace(memory=new_memory)


def load_rom(state: EmulatorState, filename: str) -> EmulatorState:
    """Read a ROM file and load it at 0x200."""
    with open(filename, 'rb') as f:
        rom_data = f.read()
    return load_program(state, rom_data)
