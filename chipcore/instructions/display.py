"""CHIP-8 display operations."""

import jax.numpy as jnp
from chipcore.state import EmulatorState
from chipcore.decode import DecodedInstruction
from chipcore.constants import SCREEN_WIDTH, SCREEN_HEIGHT, BYTES_PER_ROW, MAX_SPRITE_HEIGHT, FLAG_REGISTER
from chipcore.instructions.system import advance

# Row offsets covering the tallest sprite; rows past N are masked out
sprite_rows = jnp.arange(MAX_SPRITE_HEIGHT)


def execute_display(state: EmulatorState, instruction: DecodedInstruction) -> tuple[EmulatorState, int]:
    """DXYN - Draw sprite at (VX, VY) with height N.

    Each sprite byte lands on up to two framebuffer bytes: the one holding
    column VX and its right neighbour, wrapping around the row. Rows wrap
    around the bottom of the screen. VF is set when a lit pixel is erased.
    """
    sprite_x = jnp.astype(state.V[instruction.x], jnp.int32) % SCREEN_WIDTH
    sprite_y = jnp.astype(state.V[instruction.y], jnp.int32) % SCREEN_HEIGHT

    in_sprite = sprite_rows < instruction.n
    sprite_bytes = jnp.astype(state.memory[state.I + sprite_rows], jnp.int32)
    sprite_bytes = jnp.where(in_sprite, sprite_bytes, 0)

    shift = sprite_x % 8
    left_bits = jnp.astype(sprite_bytes >> shift, jnp.uint8)
    right_bits = jnp.astype((sprite_bytes << (8 - shift)) & 0xFF, jnp.uint8)

    row_start = ((sprite_y + sprite_rows) % SCREEN_HEIGHT) * BYTES_PER_ROW
    column = sprite_x // 8
    left_index = row_start + column
    right_index = row_start + (column + 1) % BYTES_PER_ROW

    framebuffer = state.framebuffer
    collision = jnp.any((framebuffer[left_index] & left_bits) | (framebuffer[right_index] & right_bits))

    framebuffer = framebuffer.at[left_index].set(framebuffer[left_index] ^ left_bits)
    framebuffer = framebuffer.at[right_index].set(framebuffer[right_index] ^ right_bits)

    return advance(state.replace(
        framebuffer=framebuffer,
        V=state.V.at[FLAG_REGISTER].set(jnp.astype(collision, jnp.uint8))
    )), 22734
