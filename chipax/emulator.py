"""Main CHIP-8 emulator execution engine."""

from functools import partial

import jax
import jax.lax
import jax.numpy as jnp
from chipax.state import EmulatorState, signal
from chipax.decode import decode
from chipax.errors import StepStatus
from chipax.constants import MEMORY_SIZE, PROGRAM_START
from chipax.logging import scan_with_progress
from chipax.instructions.system import execute_system_instruction
from chipax.instructions.control_flow import (
    execute_jump, execute_call, execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate, execute_skip_if_equal_register,
    execute_skip_if_not_equal_register, execute_jump_with_offset, execute_skip_if_key
)
from chipax.instructions.alu import execute_alu_operation
from chipax.instructions.memory import execute_set, execute_add, execute_set_index, execute_random
from chipax.instructions.display import execute_display
from chipax.instructions.misc import execute_misc_instruction


def execute(state: EmulatorState, instruction: int) -> EmulatorState:
    """Execute single CHIP-8 instruction.

    The PC is expected to already point past the instruction, as left by
    ``fetch``. The outcome is recorded in ``state.status``.
    """
    decoded_instruction = decode(instruction)

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
    """Fetch next instruction from memory and advance the PC past it."""
    address = jnp.astype(state.pc, jnp.int32)
    out_of_bounds = address + 1 >= MEMORY_SIZE
    high = state.memory[jnp.clip(address, 0, MEMORY_SIZE - 1)]
    low = state.memory[jnp.clip(address + 1, 0, MEMORY_SIZE - 1)]
    state = signal(state.replace(pc=state.pc + 2), out_of_bounds, StepStatus.OUT_OF_BOUNDS)
    return state, _pack_u16(high, low)


def step(state: EmulatorState) -> EmulatorState:
    """Fetch and execute one instruction.

    ``state.status`` of the result reports the outcome. When it is an error
    the returned state is the input state with only the status changed.

    A PC outside ``[0x200, program_end)`` is not fetched; the step reports
    EXIT and leaves the state alone.
    """
    state = state.replace(status=jnp.zeros((), dtype=jnp.uint8))
    address = jnp.astype(state.pc, jnp.int32)

    pre_status = jnp.where(
        address + 1 >= MEMORY_SIZE,
        int(StepStatus.OUT_OF_BOUNDS),
        jnp.where(
            (address < PROGRAM_START) | (address >= state.program_end),
            int(StepStatus.EXIT),
            int(StepStatus.OK),
        )
    )

    def _run(state):
        state, instruction = fetch(state)
        return execute(state, instruction)

    new_state = jax.lax.cond(pre_status == int(StepStatus.OK), _run, lambda s: s, state)
    status = jnp.astype(jnp.maximum(pre_status, new_state.status), jnp.uint8)

    failed = status >= int(StepStatus.UNKNOWN_OPCODE)
    new_state = jax.tree_util.tree_map(
        lambda new, old: jnp.where(failed, old, new), new_state, state
    )
    return new_state.replace(status=status)


def tick_timers(state: EmulatorState) -> EmulatorState:
    """Decrement delay and sound timers by one, stopping at zero.

    Meant to be called at 60 Hz independently of instruction execution.
    """
    return state.replace(
        delay_timer=jnp.where(state.delay_timer > 0, state.delay_timer - 1, state.delay_timer),
        sound_timer=jnp.where(state.sound_timer > 0, state.sound_timer - 1, state.sound_timer),
    )


def run_instruction(state, _):
    """Scan body: step unless a previous step halted execution."""
    running = state.status <= int(StepStatus.DRAW)
    state = jax.lax.cond(running, step, lambda s: s, state)
    return state, running & (state.status <= int(StepStatus.DRAW))


@partial(jax.jit, static_argnames=("n", "progress"))
def run_instructions(state: EmulatorState, n: int, progress: bool = False) -> tuple[EmulatorState, jnp.ndarray]:
    """Run up to ``n`` instructions in a single compiled loop.

    Execution stops at the first status other than OK or DRAW (waiting for a
    key, end of program, or an error); the remaining iterations are no-ops.

    Returns:
        Tuple of the final state and the number of instructions executed
    """
    body = run_instruction
    if progress:
        body = scan_with_progress(n, desc=f"Executing ({n:,} instructions)")(body)

    state = state.replace(status=jnp.zeros((), dtype=jnp.uint8))
    state, executed = jax.lax.scan(body, state, jnp.arange(n))
    return state, jnp.sum(executed)
