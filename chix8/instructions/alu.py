"""CHIP-8 ALU operations (8xxx)."""

import jax
import jax.lax
import jax.numpy as jnp
from chix8.state import EmulatorState
from chix8.decode import DecodedInstruction
from chix8.instructions.system import unknown_opcode


def _no_flag():
    return jnp.zeros((), dtype=jnp.uint8)


def _flag(condition) -> jnp.ndarray:
    return jnp.astype(condition, jnp.uint8)


def alu_set(vx: int, vy: int) -> tuple[int, int]:
    """8XY0 - Set: VX = VY."""
    return vy, _no_flag()


def alu_or(vx: int, vy: int) -> tuple[int, int]:
    """8XY1 - Binary OR: VX |= VY."""
    return vx | vy, _no_flag()


def alu_and(vx: int, vy: int) -> tuple[int, int]:
    """8XY2 - Binary AND: VX &= VY."""
    return vx & vy, _no_flag()


def alu_xor(vx: int, vy: int) -> tuple[int, int]:
    """8XY3 - Logical XOR: VX ^= VY."""
    return vx ^ vy, _no_flag()


def alu_add(vx: int, vy: int) -> tuple[int, int]:
    """8XY4 - Add: VX += VY, VF = carry."""
    result = jnp.astype(vx, jnp.int32) + jnp.astype(vy, jnp.int32)
    return jnp.astype(result & 0xFF, jnp.uint8), _flag(result > 0xFF)


def alu_sub_xy(vx: int, vy: int) -> tuple[int, int]:
    """8XY5 - Subtract: VX -= VY, VF = 1 when VX > VY."""
    result = jnp.astype(vx, jnp.int32) - jnp.astype(vy, jnp.int32)
    return jnp.astype(result & 0xFF, jnp.uint8), _flag(vx > vy)


def alu_shift_right(vx: int, vy: int) -> tuple[int, int]:
    """8XY6 - Shift right: VX >>= 1, VF = old bit 0."""
    return vx >> 1, _flag(vx & 0x01)


def alu_sub_yx(vx: int, vy: int) -> tuple[int, int]:
    """8XY7 - Subtract: VX = VY - VX, VF = NOT borrow."""
    result = jnp.astype(vy, jnp.int32) - jnp.astype(vx, jnp.int32)
    return jnp.astype(result & 0xFF, jnp.uint8), _flag(vy >= vx)


def alu_shift_left(vx: int, vy: int) -> tuple[int, int]:
    """8XYE - Shift left: VX <<= 1, VF = old bit 7."""
    result = (jnp.astype(vx, jnp.int32) << 1) & 0xFF
    return jnp.astype(result, jnp.uint8), _flag((vx & 0x80) >> 7)


# N -> (branch index, writes VF). Undefined N values map to the unknown-opcode branch.
_ALU_BRANCH = jnp.array([0, 1, 2, 3, 4, 5, 6, 7, 9, 9, 9, 9, 9, 9, 8, 9], dtype=jnp.int32)
_WRITES_FLAG = jnp.array([0, 0, 0, 0, 1, 1, 1, 1, 0, 0, 0, 0, 0, 0, 1, 0], dtype=jnp.bool_)


def execute_alu_operation(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """8XYN - ALU operations dispatcher.

    The result is computed from the operands as they were before the
    instruction; VF is written last, so it holds the flag even when X is F.
    """
    vx = state.V[instruction.x]
    vy = state.V[instruction.y]

    def make_branch(operation):
        def branch(state, instruction):
            result, vf = operation(vx, vy)
            new_V = state.V.at[instruction.x].set(jnp.astype(result, jnp.uint8))
            new_V = jnp.where(_WRITES_FLAG[instruction.n], new_V.at[15].set(vf), new_V)
            return state.replace(V=new_V)
        return branch

    return jax.lax.switch(
        _ALU_BRANCH[instruction.n],
        [make_branch(op) for op in (alu_set, alu_or, alu_and, alu_xor, alu_add,
                                    alu_sub_xy, alu_shift_right, alu_sub_yx, alu_shift_left)]
        + [unknown_opcode],
        state, instruction
    )
