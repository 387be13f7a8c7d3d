"""CHIP-8 ALU operations (8xxx).

Arithmetic is done in uint8 so results wrap. Carry and borrow are found by
comparing the wrapped result with the first operand.
"""

import jax.numpy as jnp
from chipcore.constants import FLAG_REGISTER
from chipcore.state import EmulatorState
from chipcore.decode import DecodedInstruction
from chipcore.instructions.system import advance

ALU_COST = 200


def alu_set(vx: jnp.ndarray, vy: jnp.ndarray) -> jnp.ndarray:
    """8XY0 - Set: VX = VY."""
    return vy


def alu_or(vx: jnp.ndarray, vy: jnp.ndarray) -> jnp.ndarray:
    """8XY1 - Binary OR: VX |= VY."""
    return vx | vy


def alu_and(vx: jnp.ndarray, vy: jnp.ndarray) -> jnp.ndarray:
    """8XY2 - Binary AND: VX &= VY."""
    return vx & vy


def alu_xor(vx: jnp.ndarray, vy: jnp.ndarray) -> jnp.ndarray:
    """8XY3 - Logical XOR: VX ^= VY."""
    return vx ^ vy


def alu_add(vx: jnp.ndarray, vy: jnp.ndarray) -> tuple[jnp.ndarray, jnp.ndarray]:
    """8XY4 - Add: VX += VY, VF = carry."""
    result = vx + vy
    carry = jnp.astype(result < vx, jnp.uint8)
    return result, carry


def alu_sub_xy(vx: jnp.ndarray, vy: jnp.ndarray) -> tuple[jnp.ndarray, jnp.ndarray]:
    """8XY5 - Subtract: VX -= VY, VF = NOT borrow."""
    result = vx - vy
    not_borrow = jnp.astype(~(result > vx), jnp.uint8)
    return result, not_borrow


def alu_sub_yx(vx: jnp.ndarray, vy: jnp.ndarray) -> tuple[jnp.ndarray, jnp.ndarray]:
    """8XY7 - Subtract: VX = VY - VX, VF = NOT borrow."""
    result = vy - vx
    not_borrow = jnp.astype(~(result > vy), jnp.uint8)
    return result, not_borrow


def alu_shift_right(vx: jnp.ndarray, vy: jnp.ndarray) -> tuple[jnp.ndarray, jnp.ndarray]:
    """8XY6 - Shift right: VX >>= 1, VF = bit shifted out."""
    return vx >> 1, vx & 1


def alu_shift_left(vx: jnp.ndarray, vy: jnp.ndarray) -> tuple[jnp.ndarray, jnp.ndarray]:
    """8XYE - Shift left: VX <<= 1, VF = bit shifted out."""
    return vx << 1, vx >> 7


def make_logic_instruction(alu_fn, cost=ALU_COST):
    """Factory for 8XYN operations that leave VF alone."""
    def logic_instruction(state: EmulatorState, instruction: DecodedInstruction) -> tuple[EmulatorState, int]:
        result = alu_fn(state.V[instruction.x], state.V[instruction.y])
        return advance(state.replace(V=state.V.at[instruction.x].set(result))), cost
    return logic_instruction


def make_flag_instruction(alu_fn, cost=ALU_COST):
    """Factory for 8XYN operations reporting carry, borrow or shift-out in VF.

    VF is written after VX, so the flag wins when X is F.
    """
    def flag_instruction(state: EmulatorState, instruction: DecodedInstruction) -> tuple[EmulatorState, int]:
        result, flag = alu_fn(state.V[instruction.x], state.V[instruction.y])
        new_V = state.V.at[instruction.x].set(result)
        new_V = new_V.at[FLAG_REGISTER].set(flag)
        return advance(state.replace(V=new_V)), cost
    return flag_instruction


execute_alu_set = make_logic_instruction(alu_set, cost=27)
execute_alu_or = make_logic_instruction(alu_or)
execute_alu_and = make_logic_instruction(alu_and)
execute_alu_xor = make_logic_instruction(alu_xor)
execute_alu_add = make_flag_instruction(alu_add, cost=45)
execute_alu_sub_xy = make_flag_instruction(alu_sub_xy)
execute_alu_shift_right = make_flag_instruction(alu_shift_right)
execute_alu_sub_yx = make_flag_instruction(alu_sub_yx)
execute_alu_shift_left = make_flag_instruction(alu_shift_left)
