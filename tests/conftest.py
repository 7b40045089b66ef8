"""Test configuration and fixtures for CHIP-8 emulator tests."""

import pytest
import jax.numpy as jnp
from chix8 import create_state, Chip8
from chix8.logging import ConsoleLogger


@pytest.fixture
def fresh_state():
    """Provide a fresh emulator state for each test."""
    return create_state()


@pytest.fixture
def quiet_logger():
    return ConsoleLogger("test", log_level="CRITICAL")


@pytest.fixture
def chip8(quiet_logger):
    """Provide a seeded interpreter that only logs critical messages."""
    return Chip8(seed=0, logger=quiet_logger)


def setup_sprite_in_memory(state, address, sprite_bytes):
    """Helper to put sprite data in memory."""
    return state.replace(
        memory=state.memory.at[address:address+len(sprite_bytes)].set(
            jnp.array(sprite_bytes, dtype=jnp.uint8)
        )
    )


def program(*words):
    """Assemble instruction words into big-endian ROM bytes."""
    return b"".join(word.to_bytes(2, "big") for word in words)
