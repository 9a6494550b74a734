"""CHIP-8 miscellaneous instructions (Fxxx)."""

import jax
import jax.lax
import jax.numpy as jnp
import numpy as np
from chipax.state import EmulatorState, signal
from chipax.decode import DecodedInstruction
from chipax.errors import StepStatus
from chipax.constants import FONT_GLYPH_SIZE, FONT_START, MEMORY_SIZE, NUM_REGISTERS
from chipax.instructions.system import unknown_instruction


def execute_get_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX07 - Set VX to delay timer value."""
    return state.replace(V=state.V.at[instruction.x].set(state.delay_timer))


def execute_set_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX15 - Set delay timer to VX."""
    return state.replace(delay_timer=state.V[instruction.x])


def execute_set_sound_timer(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX18 - Set sound timer to VX."""
    return state.replace(sound_timer=state.V[instruction.x])


def execute_add_to_index(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX1E - Add VX to I register, wrapping at 16 bits. VF untouched."""
    return state.replace(I=state.I + jnp.astype(state.V[instruction.x], jnp.uint16))


def execute_wait_for_key(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX0A - Wait for key press.

    Never blocks: without a pressed key the PC is rewound onto this
    instruction and the step reports WAIT_FOR_KEY, so the next step checks
    the keypad again.
    """
    def key_pressed_action(state):
        pressed_key = jnp.astype(jnp.argmax(state.keypad), jnp.uint8)
        return state.replace(V=state.V.at[instruction.x].set(pressed_key))

    def wait_action(state):
        state = state.replace(pc=state.pc - 2)
        return signal(state, True, StepStatus.WAIT_FOR_KEY)

    return jax.lax.cond(jnp.any(state.keypad), key_pressed_action, wait_action, state)


def execute_font_character(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX29 - Set I to location of sprite for digit VX."""
    digit = state.V[instruction.x]
    font_address = FONT_START + jnp.astype(digit, jnp.uint16) * FONT_GLYPH_SIZE
    state = state.replace(I=jnp.astype(font_address, jnp.uint16))
    return signal(state, digit > 0xF, StepStatus.OUT_OF_BOUNDS)


def execute_bcd_conversion(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX33 - Store BCD representation of VX at I, I+1, I+2."""
    value = state.V[instruction.x]

    digits = jnp.array([
        value // 100,
        (value // 10) % 10,
        value % 10
    ], dtype=jnp.uint8)

    indices = jnp.arange(3) + jnp.astype(state.I, jnp.int32)
    new_memory = state.memory.at[indices].set(digits, mode="drop")
    state = state.replace(memory=new_memory)
    return signal(state, indices[-1] >= MEMORY_SIZE, StepStatus.OUT_OF_BOUNDS)


def _register_block(state: EmulatorState, instruction: DecodedInstruction):
    """Mask and memory addresses of V0..VX for FX55/FX65."""
    register_mask = jnp.arange(NUM_REGISTERS) <= instruction.x
    base_indices = jnp.astype(state.I, jnp.int32) + jnp.arange(NUM_REGISTERS)
    out_of_bounds = jnp.astype(state.I, jnp.int32) + instruction.x >= MEMORY_SIZE
    return register_mask, base_indices, out_of_bounds


def _advance_index(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    if state.quirks.load_store_increments_index:
        return state.replace(I=state.I + jnp.astype(instruction.x, jnp.uint16) + 1)
    return state


def execute_store_registers(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX55 - Store V0 through VX in memory starting at I."""
    register_mask, base_indices, out_of_bounds = _register_block(state, instruction)
    current_memory_values = state.memory[jnp.clip(base_indices, 0, MEMORY_SIZE - 1)]
    new_memory_values = jnp.where(register_mask, state.V, current_memory_values)
    new_memory = state.memory.at[base_indices].set(new_memory_values, mode="drop")

    state = _advance_index(state.replace(memory=new_memory), instruction)
    return signal(state, out_of_bounds, StepStatus.OUT_OF_BOUNDS)


def execute_load_registers(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """FX65 - Load V0 through VX from memory starting at I."""
    register_mask, base_indices, out_of_bounds = _register_block(state, instruction)
    memory_values = state.memory[jnp.clip(base_indices, 0, MEMORY_SIZE - 1)]
    new_V = jnp.where(register_mask, memory_values, state.V)

    state = _advance_index(state.replace(V=new_V), instruction)
    return signal(state, out_of_bounds, StepStatus.OUT_OF_BOUNDS)


MISC_HANDLERS = {
    0x07: execute_get_delay_timer,
    0x0A: execute_wait_for_key,
    0x15: execute_set_delay_timer,
    0x18: execute_set_sound_timer,
    0x1E: execute_add_to_index,
    0x29: execute_font_character,
    0x33: execute_bcd_conversion,
    0x55: execute_store_registers,
    0x65: execute_load_registers,
}

# Low byte -> handler index; unlisted bytes map to the trailing unknown handler
_MISC_TABLE = np.full(256, len(MISC_HANDLERS), dtype=np.int32)
_MISC_TABLE[list(MISC_HANDLERS)] = np.arange(len(MISC_HANDLERS))
MISC_TABLE = jnp.asarray(_MISC_TABLE)


def execute_misc_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """Dispatch misc instructions on the low byte."""
    return jax.lax.switch(
        MISC_TABLE[instruction.nn],
        [*MISC_HANDLERS.values(), unknown_instruction],
        state, instruction
    )
