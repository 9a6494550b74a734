"""CHIP-8 emulator state structures."""

import dataclasses

import jax
import jax.numpy as jnp
from flax.struct import dataclass, PyTreeNode, field

from chipax.constants import (
    FONT_DATA, FONT_START, MAX_PROGRAM_SIZE, MEMORY_SIZE, NUM_KEYS, NUM_REGISTERS,
    PROGRAM_START, SCREEN_HEIGHT, SCREEN_WIDTH, STACK_SIZE,
)
from chipax.errors import CapacityError, StepStatus


@dataclasses.dataclass(frozen=True)
class Quirks:
    """Interpreter behaviours that differ between historical CHIP-8 implementations.

    Attributes:
        shift_uses_vy: 8XY6/8XYE shift VY into VX instead of shifting VX in place
        load_store_increments_index: FX55/FX65 leave I pointing past the last register
        jump_uses_vx: BXNN jumps to XNN + VX instead of NNN + V0
    """
    shift_uses_vy: bool = False
    load_store_increments_index: bool = False
    jump_uses_vx: bool = False


@dataclass(frozen=True)
class StackState:
    """Stack state for subroutine calls."""
    data: jnp.ndarray = field(default_factory=lambda: jnp.zeros(STACK_SIZE, dtype=jnp.uint16))
    pointer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))


class EmulatorState(PyTreeNode):
    """Main CHIP-8 emulator state."""
    rng: jax.random.PRNGKey
    memory: jnp.ndarray = field(default_factory=lambda: jnp.zeros(MEMORY_SIZE, dtype=jnp.uint8))
    pc: jnp.ndarray = field(default_factory=lambda: jnp.astype(PROGRAM_START, jnp.uint16))
    display: jnp.ndarray = field(default_factory=lambda: jnp.zeros((SCREEN_WIDTH, SCREEN_HEIGHT), dtype=jnp.bool_))
    stack: StackState = StackState()
    delay_timer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    sound_timer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    keypad: jnp.ndarray = field(default_factory=lambda: jnp.zeros(NUM_KEYS, dtype=jnp.bool_))
    V: jnp.ndarray = field(default_factory=lambda: jnp.zeros(NUM_REGISTERS, dtype=jnp.uint8))
    I: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint16))
    status: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    program_end: jnp.ndarray = field(default_factory=lambda: jnp.astype(PROGRAM_START, jnp.uint16))
    quirks: Quirks = field(pytree_node=False, default=Quirks())


def create_state(rng: jax.random.PRNGKey = jax.random.PRNGKey(0), quirks: Quirks = Quirks()) -> EmulatorState:
    """Create initial emulator state with font data loaded."""
    state = EmulatorState(rng, quirks=quirks)
    font = jnp.array(FONT_DATA, dtype=jnp.uint8)
    return state.replace(memory=state.memory.at[FONT_START:FONT_START + len(FONT_DATA)].set(font))


def reset(state: EmulatorState) -> EmulatorState:
    """Return a freshly initialised state, keeping the RNG key, quirks and keypad."""
    return create_state(state.rng, state.quirks).replace(keypad=state.keypad)


def load_program(state: EmulatorState, program: bytes) -> EmulatorState:
    """Copy program bytes into memory starting at 0x200.

    Only memory and ``program_end`` change; PC and registers are left alone.

    Raises:
        CapacityError: if the program is larger than the memory above 0x200
    """
    if len(program) > MAX_PROGRAM_SIZE:
        raise CapacityError(len(program), MAX_PROGRAM_SIZE)
    program_array = jnp.array(list(program), dtype=jnp.uint8)
    new_memory = state.memory.at[PROGRAM_START:PROGRAM_START + len(program)].set(program_array)
    return state.replace(
        memory=new_memory,
        program_end=jnp.astype(PROGRAM_START + len(program), jnp.uint16),
    )


def signal(state: EmulatorState, condition, status: StepStatus) -> EmulatorState:
    """Record ``status`` on the state where ``condition`` holds."""
    return state.replace(status=jnp.where(condition, jnp.uint8(int(status)), state.status))
