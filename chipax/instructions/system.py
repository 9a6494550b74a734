"""CHIP-8 system instructions (0x0xxx)."""

import jax
import jax.lax
import jax.numpy as jnp
from chipax.state import EmulatorState, signal
from chipax.decode import DecodedInstruction
from chipax.errors import StepStatus
from chipax.stack import pop


def unknown_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """Flag an instruction that matches no decode rule."""
    return signal(state, True, StepStatus.UNKNOWN_OPCODE)


def execute_machine_routine(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """0NNN - Call machine code routine at NNN (ignored by interpreters)."""
    return state


def execute_clear_screen(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00E0 - Clear display."""
    state = state.replace(display=jnp.zeros_like(state.display))
    return signal(state, True, StepStatus.DRAW)


def execute_return(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00EE - Return from subroutine."""
    stack, address, underflow = pop(state.stack)
    state = state.replace(stack=stack, pc=jnp.where(underflow, state.pc, address))
    return signal(state, underflow, StepStatus.STACK_UNDERFLOW)


def execute_system_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """Dispatch system instructions."""
    index = jnp.where(
        instruction.raw == 0x00E0, 1,
        jnp.where(instruction.raw == 0x00EE, 2, 0)
    )
    return jax.lax.switch(
        index,
        [execute_machine_routine, execute_clear_screen, execute_return],
        state, instruction
    )
