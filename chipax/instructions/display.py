"""CHIP-8 display operations."""

import jax.numpy as jnp
from chipax.state import EmulatorState, signal
from chipax.decode import DecodedInstruction
from chipax.errors import StepStatus
from chipax.constants import FLAG_REGISTER, MEMORY_SIZE, SCREEN_WIDTH, SCREEN_HEIGHT, SPRITE_WIDTH

# Pre-computed coordinate grids for display operations
xx, yy = jnp.meshgrid(jnp.arange(SCREEN_WIDTH), jnp.arange(SCREEN_HEIGHT), indexing='ij')


def execute_display(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """DXYN - Draw sprite at (VX, VY) with height N.

    Sprites wrap around both screen edges. VF is set to 1 when a lit pixel is
    turned off, 0 otherwise.
    """
    sprite_x = jnp.astype(state.V[instruction.x], jnp.int32) % SCREEN_WIDTH
    sprite_y = jnp.astype(state.V[instruction.y], jnp.int32) % SCREEN_HEIGHT

    col_offset = (xx - sprite_x) % SCREEN_WIDTH
    row_offset = (yy - sprite_y) % SCREEN_HEIGHT
    in_sprite = (col_offset < SPRITE_WIDTH) & (row_offset < instruction.n)

    sprite_end = jnp.astype(state.I, jnp.int32) + instruction.n
    out_of_bounds = sprite_end > MEMORY_SIZE

    addresses = jnp.clip(jnp.astype(state.I, jnp.int32) + row_offset, 0, MEMORY_SIZE - 1)
    sprite_bytes = jnp.astype(state.memory[addresses], jnp.int32)
    bit = jnp.clip(SPRITE_WIDTH - 1 - col_offset, 0, SPRITE_WIDTH - 1)
    sprite = (((sprite_bytes >> bit) & 1) == 1) & in_sprite

    collision = jnp.any(state.display & sprite)
    state = state.replace(
        display=state.display ^ sprite,
        V=state.V.at[FLAG_REGISTER].set(jnp.astype(collision, jnp.uint8))
    )
    state = signal(state, True, StepStatus.DRAW)
    return signal(state, out_of_bounds, StepStatus.OUT_OF_BOUNDS)
