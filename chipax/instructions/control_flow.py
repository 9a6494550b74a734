"""CHIP-8 control flow instructions."""

import jax
import jax.lax
import jax.numpy as jnp
from chipax.state import EmulatorState, signal
from chipax.decode import DecodedInstruction
from chipax.errors import StepStatus
from chipax.stack import push


def execute_jump(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """1NNN - Jump to address NNN."""
    return state.replace(pc=jnp.astype(instruction.nnn, jnp.uint16))


def execute_call(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """2NNN - Call subroutine at NNN."""
    stack, overflow = push(state.stack, state.pc)
    state = state.replace(
        stack=stack,
        pc=jnp.where(overflow, state.pc, jnp.astype(instruction.nnn, jnp.uint16))
    )
    return signal(state, overflow, StepStatus.STACK_OVERFLOW)


def make_skip_instruction(condition_fn, valid_fn=None):
    """Factory for skip instructions.

    ``valid_fn`` rejects encodings of the family that have no meaning.
    """
    def skip_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
        condition = condition_fn(state, instruction)
        state = jax.lax.cond(
            condition,
            lambda s: s.replace(pc=s.pc + 2),
            lambda s: s,
            state
        )
        if valid_fn is not None:
            state = signal(state, jnp.logical_not(valid_fn(instruction)), StepStatus.UNKNOWN_OPCODE)
        return state
    return skip_instruction


execute_skip_if_equal_immediate = make_skip_instruction(
    lambda state, inst: state.V[inst.x] == inst.nn
)

execute_skip_if_not_equal_immediate = make_skip_instruction(
    lambda state, inst: state.V[inst.x] != inst.nn
)

execute_skip_if_equal_register = make_skip_instruction(
    lambda state, inst: state.V[inst.x] == state.V[inst.y],
    lambda inst: inst.n == 0
)

execute_skip_if_not_equal_register = make_skip_instruction(
    lambda state, inst: state.V[inst.x] != state.V[inst.y],
    lambda inst: inst.n == 0
)


def execute_jump_with_offset(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """BNNN - Jump to address NNN + V0 (BXNN - XNN + VX with the jump_uses_vx quirk)."""
    register = instruction.x if state.quirks.jump_uses_vx else 0
    jump_address = jnp.astype(instruction.nnn, jnp.uint16) + jnp.astype(state.V[register], jnp.uint16)
    return state.replace(pc=jump_address)


def _is_key_instruction(instruction: DecodedInstruction):
    return (instruction.nn == 0x9E) | (instruction.nn == 0xA1)


_skip_on_key = make_skip_instruction(
    lambda state, inst: state.keypad[jnp.minimum(state.V[inst.x], 0xF)] ^ (inst.nn == 0xA1),
    _is_key_instruction
)


def execute_skip_if_key(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """EX9E/EXA1 - Skip if key VX pressed/not pressed.

    VX above 0xF names no key and is out of bounds.
    """
    no_such_key = (state.V[instruction.x] > 0xF) & _is_key_instruction(instruction)
    state = _skip_on_key(state, instruction)
    return signal(state, no_such_key, StepStatus.OUT_OF_BOUNDS)
