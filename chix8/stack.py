"""CHIP-8 stack operations."""

import jax.numpy as jnp
from chix8.constants import STACK_SIZE
from chix8.state import StackState


def is_full(stack: StackState) -> jnp.ndarray:
    return stack.pointer >= STACK_SIZE


def is_empty(stack: StackState) -> jnp.ndarray:
    return stack.pointer <= 0


def push(stack: StackState, address: jnp.ndarray) -> StackState:
    """Push address onto stack.

    Callers must check ``is_full`` first; pushing onto a full stack is a no-op.
    """
    address = jnp.astype(address, jnp.uint16)
    index = jnp.minimum(stack.pointer, STACK_SIZE - 1)
    new_data = jnp.where(is_full(stack), stack.data, stack.data.at[index].set(address))
    new_pointer = jnp.where(is_full(stack), stack.pointer, stack.pointer + 1)
    return stack.replace(data=new_data, pointer=new_pointer)


def pop(stack: StackState) -> tuple[StackState, jnp.ndarray]:
    """Pop address from stack.

    Callers must check ``is_empty`` first; popping an empty stack returns 0.
    """
    empty = is_empty(stack)
    new_pointer = jnp.where(empty, stack.pointer, stack.pointer - 1)
    index = jnp.maximum(new_pointer, 0)
    popped_address = jnp.where(empty, jnp.zeros((), dtype=jnp.uint16), stack.data[index])
    new_data = jnp.where(empty, stack.data, stack.data.at[index].set(0))
    return stack.replace(data=new_data, pointer=new_pointer), popped_address
