"""CHIP-8 control flow instructions."""

import jax.numpy as jnp
from chipcore.state import EmulatorState
from chipcore.decode import DecodedInstruction
from chipcore.stack import push
from chipcore.instructions.system import advance

SKIP_COST = 61
KEY_SKIP_COST = 73


def execute_jump(state: EmulatorState, instruction: DecodedInstruction) -> tuple[EmulatorState, int]:
    """1NNN - Jump to address NNN."""
    return state.replace(pc=jnp.astype(instruction.nnn, jnp.uint16)), 105


def execute_call(state: EmulatorState, instruction: DecodedInstruction) -> tuple[EmulatorState, int]:
    """2NNN - Call subroutine at NNN."""
    state = state.replace(stack=push(state.stack, state.pc + 2))
    return execute_jump(state, instruction)


def make_skip_instruction(condition_fn, cost=SKIP_COST):
    """Factory for skip instructions."""
    def skip_instruction(state: EmulatorState, instruction: DecodedInstruction) -> tuple[EmulatorState, int]:
        condition = condition_fn(state, instruction)
        return advance(state, jnp.where(condition, 2, 1)), cost
    return skip_instruction


execute_skip_if_equal_immediate = make_skip_instruction(
    lambda state, inst: state.V[inst.x] == inst.nn
)

execute_skip_if_not_equal_immediate = make_skip_instruction(
    lambda state, inst: state.V[inst.x] != inst.nn
)

execute_skip_if_equal_register = make_skip_instruction(
    lambda state, inst: state.V[inst.x] == state.V[inst.y]
)

execute_skip_if_not_equal_register = make_skip_instruction(
    lambda state, inst: state.V[inst.x] != state.V[inst.y]
)


def is_key_pressed(state: EmulatorState, key: jnp.ndarray) -> jnp.ndarray:
    """Whether `key` is held in the keypad mask. Keys above 0xF are never held."""
    key = jnp.astype(key, jnp.uint16)
    return (key < 16) & (((state.keypad >> (key & 0xF)) & 1) == 1)


execute_skip_if_key = make_skip_instruction(
    lambda state, inst: is_key_pressed(state, state.V[inst.x]),
    cost=KEY_SKIP_COST,
)

execute_skip_if_not_key = make_skip_instruction(
    lambda state, inst: ~is_key_pressed(state, state.V[inst.x]),
    cost=KEY_SKIP_COST,
)


def execute_jump_with_offset(state: EmulatorState, instruction: DecodedInstruction) -> tuple[EmulatorState, int]:
    """BNNN - Jump to address NNN + V0."""
    jump_address = jnp.astype(instruction.nnn, jnp.uint16) + jnp.astype(state.V[0], jnp.uint16)
    return state.replace(pc=jump_address), 105
