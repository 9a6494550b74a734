"""Test configuration and fixtures for CHIP-8 interpreter tests."""

import pytest
import jax.numpy as jnp
from chipax import Quirks, create_state, load_program
from chipax.logging import ConsoleLogger


@pytest.fixture
def fresh_state():
    """Provide a fresh emulator state for each test."""
    return create_state()


@pytest.fixture
def cosmac_state():
    """Provide a fresh state with the original COSMAC VIP quirks."""
    return create_state(quirks=Quirks(shift_uses_vy=True, load_store_increments_index=True))


@pytest.fixture
def quiet_logger():
    """Logger that only reports critical messages."""
    return ConsoleLogger(log_level="CRITICAL", use_colors=False, show_timestamps=False)


def setup_sprite_in_memory(state, address, sprite_bytes):
    """Helper to put sprite data in memory."""
    return state.replace(
        memory=state.memory.at[address:address+len(sprite_bytes)].set(
            jnp.array(sprite_bytes, dtype=jnp.uint8)
        )
    )


def assemble(*instructions):
    """Helper to turn 16-bit instruction words into program bytes."""
    return b"".join(instruction.to_bytes(2, "big") for instruction in instructions)


def program_state(*instructions, state=None):
    """Helper to build a state with the given instructions loaded at 0x200."""
    if state is None:
        state = create_state()
    return load_program(state, assemble(*instructions))
