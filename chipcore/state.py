"""CHIP-8 emulator state structures."""

import jax
import jax.numpy as jnp
import numpy as np
from flax.struct import dataclass, field, PyTreeNode

from chipcore.constants import (
    PROGRAM_START, FONT_START, FONT_DATA, MEMORY_SIZE, NUM_REGISTERS, FRAMEBUFFER_SIZE, STACK_SIZE
)


@dataclass(frozen=True)
class StackState:
    """Stack state for subroutine calls."""
    data: jnp.ndarray = field(default_factory=lambda: jnp.zeros(STACK_SIZE, dtype=jnp.uint16))
    pointer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))


class EmulatorState(PyTreeNode):
    """Main CHIP-8 emulator state.

    Attributes:
        rng: PRNG key consumed by CXNN
        memory: 4 KiB of byte-addressed RAM, font at 0x000, program at 0x200
        pc: Program counter
        framebuffer: 64x32 monochrome display packed 8 pixels per byte, MSB first
        stack: Return addresses and stack pointer
        delay_timer: Delay timer, decremented once per frame
        sound_timer: Sound timer, decremented once per frame
        keypad: Bitmask of held keys, bit n for key n
        V: General purpose registers V0..VF
        I: Index register
        tone: Whether the sound timer was running at the start of the frame
        budget: Microseconds of emulated time left in the current frame
    """
    rng: jax.Array
    memory: jnp.ndarray = field(default_factory=lambda: jnp.zeros(MEMORY_SIZE, dtype=jnp.uint8))
    pc: jnp.ndarray = field(default_factory=lambda: jnp.asarray(PROGRAM_START, dtype=jnp.uint16))
    framebuffer: jnp.ndarray = field(default_factory=lambda: jnp.zeros(FRAMEBUFFER_SIZE, dtype=jnp.uint8))
    stack: StackState = field(default_factory=StackState)
    delay_timer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    sound_timer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    keypad: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint16))
    V: jnp.ndarray = field(default_factory=lambda: jnp.zeros(NUM_REGISTERS, dtype=jnp.uint8))
    I: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint16))
    tone: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.bool_))
    budget: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.int32))


def seed_to_key(seed: int) -> jax.Array:
    """Build a PRNG key from a 64-bit seed.

    The seed is split in two 32-bit halves so it does not depend on jax_enable_x64.
    """
    if not isinstance(seed, (int, np.integer)):
        raise TypeError(f"Seed must be an integer, got {type(seed).__name__}")
    seed = int(seed)
    if not 0 <= seed < 2 ** 64:
        raise ValueError(f"Seed must fit in 64 unsigned bits, got {seed}")
    key = jax.random.PRNGKey(np.uint32(seed & 0xFFFFFFFF))
    return jax.random.fold_in(key, np.uint32(seed >> 32))


def create_state(seed: int = 0) -> EmulatorState:
    """Create initial emulator state with font data loaded."""
    state = EmulatorState(rng=seed_to_key(seed))
    return state.replace(memory=state.memory.at[FONT_START:FONT_START + len(FONT_DATA)].set(FONT_DATA))
