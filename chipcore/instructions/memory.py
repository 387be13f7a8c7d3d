"""CHIP-8 memory and register operations."""

import jax
import jax.numpy as jnp
from chipcore.state import EmulatorState
from chipcore.decode import DecodedInstruction
from chipcore.instructions.system import advance


def execute_set(state: EmulatorState, instruction: DecodedInstruction) -> tuple[EmulatorState, int]:
    """6XNN - Set VX = NN."""
    return advance(state.replace(V=state.V.at[instruction.x].set(instruction.nn))), 27


def execute_add(state: EmulatorState, instruction: DecodedInstruction) -> tuple[EmulatorState, int]:
    """7XNN - Add NN to VX, no carry flag."""
    return advance(state.replace(V=state.V.at[instruction.x].add(instruction.nn))), 45


def execute_set_index(state: EmulatorState, instruction: DecodedInstruction) -> tuple[EmulatorState, int]:
    """ANNN - Set I = NNN."""
    return advance(state.replace(I=jnp.astype(instruction.nnn, jnp.uint16))), 55


def execute_random(state: EmulatorState, instruction: DecodedInstruction) -> tuple[EmulatorState, int]:
    """CXNN - Set VX = random & NN."""
    key, subkey = jax.random.split(state.rng)
    random_value = jax.random.randint(subkey, shape=(), minval=0, maxval=256, dtype=jnp.int32)
    random_byte = jnp.astype(random_value & instruction.nn, jnp.uint8)
    return advance(state.replace(V=state.V.at[instruction.x].set(random_byte), rng=key)), 164
