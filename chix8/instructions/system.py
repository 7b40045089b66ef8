"""CHIP-8 system instructions (0x0xxx)."""

import jax
import jax.lax
import jax.numpy as jnp
from chix8.state import EmulatorState
from chix8.decode import DecodedInstruction
from chix8.constants import STATUS_UNKNOWN_OPCODE, STATUS_STACK_UNDERFLOW
from chix8.stack import pop, is_empty


def unknown_opcode(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """Flag an unmatched instruction word; execution carries on after it."""
    return state.with_status(STATUS_UNKNOWN_OPCODE)


def execute_clear_screen(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00E0 - Clear display."""
    return state.replace(display=jnp.zeros_like(state.display))


def execute_return(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00EE - Return from subroutine."""
    def _return(state):
        stack, address = pop(state.stack)
        return state.replace(stack=stack, pc=address)

    return jax.lax.cond(
        is_empty(state.stack),
        lambda state: state.with_status(STATUS_STACK_UNDERFLOW),
        _return,
        state
    )


def execute_system_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """Dispatch system instructions."""
    index = jnp.where(instruction.raw == 0x00E0, 0, jnp.where(instruction.raw == 0x00EE, 1, 2))
    return jax.lax.switch(
        index,
        [execute_clear_screen, execute_return, unknown_opcode],
        state, instruction
    )
