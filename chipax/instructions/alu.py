"""CHIP-8 ALU operations (8xxx).

Every operation returns ``(result, flag)``. Only the operations listed in
``WRITES_FLAG`` store the flag in VF, after the result, so VF holds the flag
even when it is also the destination register.
"""

import jax
import jax.lax
import jax.numpy as jnp
from chipax.constants import FLAG_REGISTER
from chipax.state import EmulatorState, signal
from chipax.decode import DecodedInstruction
from chipax.errors import StepStatus


def alu_set(vx: int, vy: int) -> tuple[int, int]:
    """8XY0 - Set: VX = VY. VF untouched."""
    return vy, jnp.zeros((), dtype=jnp.uint8)


def alu_or(vx: int, vy: int) -> tuple[int, int]:
    """8XY1 - Binary OR: VX |= VY. VF untouched."""
    return vx | vy, jnp.zeros((), dtype=jnp.uint8)


def alu_and(vx: int, vy: int) -> tuple[int, int]:
    """8XY2 - Binary AND: VX &= VY. VF untouched."""
    return vx & vy, jnp.zeros((), dtype=jnp.uint8)


def alu_xor(vx: int, vy: int) -> tuple[int, int]:
    """8XY3 - Logical XOR: VX ^= VY. VF untouched."""
    return vx ^ vy, jnp.zeros((), dtype=jnp.uint8)


def alu_add(vx: int, vy: int) -> tuple[int, int]:
    """8XY4 - Add: VX += VY, VF = 1 on carry else 0."""
    result = jnp.astype(vx, jnp.uint16) + jnp.astype(vy, jnp.uint16)
    carry = jnp.astype(result > 0xFF, jnp.uint8)
    return jnp.astype(result & 0xFF, jnp.uint8), carry


def alu_sub_xy(vx: int, vy: int) -> tuple[int, int]:
    """8XY5 - Subtract: VX -= VY, VF = 1 if VX >= VY else 0 (not borrow)."""
    not_borrow = jnp.astype(vx >= vy, jnp.uint8)
    return vx - vy, not_borrow


def alu_shift_right(vx: int, vy: int) -> tuple[int, int]:
    """8XY6 - Shift right: VX >>= 1, VF = bit shifted out (bit 0)."""
    shifted_bit = vx & 1
    return vx >> 1, shifted_bit


def alu_sub_yx(vx: int, vy: int) -> tuple[int, int]:
    """8XY7 - Subtract: VX = VY - VX, VF = 1 if VY >= VX else 0 (not borrow)."""
    not_borrow = jnp.astype(vy >= vx, jnp.uint8)
    return vy - vx, not_borrow


def alu_shift_left(vx: int, vy: int) -> tuple[int, int]:
    """8XYE - Shift left: VX <<= 1, VF = bit shifted out (bit 7)."""
    shifted_bit = (vx & 0x80) >> 7
    return vx << 1, shifted_bit


# Low nibble -> branch index, -1 for undefined operations
ALU_BRANCH = jnp.array([0, 1, 2, 3, 4, 5, 6, 7, -1, -1, -1, -1, -1, -1, 8, -1], dtype=jnp.int32)
WRITES_FLAG = jnp.array([0, 0, 0, 0, 1, 1, 1, 1, 1], dtype=bool)


def execute_alu_operation(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """8XYN - ALU operations dispatcher."""
    vx = state.V[instruction.x]
    vy = state.V[instruction.y]

    def _alu_shift_right(vx, vy):
        return alu_shift_right(vy if state.quirks.shift_uses_vy else vx, vy)

    def _alu_shift_left(vx, vy):
        return alu_shift_left(vy if state.quirks.shift_uses_vy else vx, vy)

    branch = ALU_BRANCH[instruction.n]
    defined = branch >= 0
    branch = jnp.maximum(branch, 0)

    result, flag = jax.lax.switch(
        branch,
        [alu_set, alu_or, alu_and, alu_xor, alu_add,
         alu_sub_xy, _alu_shift_right, alu_sub_yx, _alu_shift_left],
        vx, vy
    )

    new_V = state.V.at[instruction.x].set(jnp.astype(result, jnp.uint8))
    new_V = jnp.where(WRITES_FLAG[branch], new_V.at[FLAG_REGISTER].set(jnp.astype(flag, jnp.uint8)), new_V)
    new_V = jnp.where(defined, new_V, state.V)
    return signal(state.replace(V=new_V), jnp.logical_not(defined), StepStatus.UNKNOWN_OPCODE)
