"""CHIP-8 miscellaneous instructions (Fxxx)."""

import jax.numpy as jnp
from chipcore.state import EmulatorState
from chipcore.decode import DecodedInstruction
from chipcore.constants import FONT_START, FONT_GLYPH_SIZE, NUM_KEYS, NUM_REGISTERS
from chipcore.instructions.system import advance

register_indices = jnp.arange(NUM_REGISTERS)
key_indices = jnp.arange(NUM_KEYS, dtype=jnp.uint16)


def execute_get_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> tuple[EmulatorState, int]:
    """FX07 - Set VX to delay timer value."""
    return advance(state.replace(V=state.V.at[instruction.x].set(state.delay_timer))), 27


def execute_wait_for_key(state: EmulatorState, instruction: DecodedInstruction) -> tuple[EmulatorState, int]:
    """FX0A - Wait for key press (blocking).

    With no key held PC stays put, so the instruction runs again on the next
    cycle until a key shows up in the mask.
    """
    held = ((state.keypad >> key_indices) & 1) == 1
    any_held = jnp.any(held)
    pressed_key = jnp.astype(jnp.argmax(held), jnp.uint8)
    new_V = jnp.where(any_held, state.V.at[instruction.x].set(pressed_key), state.V)
    return advance(state.replace(V=new_V), jnp.astype(any_held, jnp.int32)), 200


def execute_set_delay_timer(state: EmulatorState, instruction: DecodedInstruction) -> tuple[EmulatorState, int]:
    """FX15 - Set delay timer to VX."""
    return advance(state.replace(delay_timer=state.V[instruction.x])), 45


def execute_set_sound_timer(state: EmulatorState, instruction: DecodedInstruction) -> tuple[EmulatorState, int]:
    """FX18 - Set sound timer to VX."""
    return advance(state.replace(sound_timer=state.V[instruction.x])), 45


def execute_add_to_index(state: EmulatorState, instruction: DecodedInstruction) -> tuple[EmulatorState, int]:
    """FX1E - Add VX to I register, wrapping at 16 bits. VF is left alone."""
    new_i = state.I + jnp.astype(state.V[instruction.x], jnp.uint16)
    return advance(state.replace(I=new_i)), 86


def execute_font_character(state: EmulatorState, instruction: DecodedInstruction) -> tuple[EmulatorState, int]:
    """FX29 - Set I to location of sprite for digit VX."""
    font_address = FONT_START + jnp.astype(state.V[instruction.x], jnp.uint16) * FONT_GLYPH_SIZE
    return advance(state.replace(I=jnp.astype(font_address, jnp.uint16))), 91


def execute_bcd_conversion(state: EmulatorState, instruction: DecodedInstruction) -> tuple[EmulatorState, int]:
    """FX33 - Store BCD representation of VX at I, I+1, I+2."""
    value = state.V[instruction.x]

    digits = jnp.array([
        value // 100,
        (value // 10) % 10,
        value % 10
    ], dtype=jnp.uint8)

    indices = jnp.arange(3) + state.I
    new_memory = state.memory.at[indices].set(digits)
    return advance(state.replace(memory=new_memory)), 927


def execute_store_registers(state: EmulatorState, instruction: DecodedInstruction) -> tuple[EmulatorState, int]:
    """FX55 - Store V0 through VX in memory starting at I."""
    register_mask = register_indices <= instruction.x
    base_indices = state.I + register_indices
    current_memory_values = state.memory[base_indices]
    new_memory_values = jnp.where(register_mask, state.V, current_memory_values)
    new_memory = state.memory.at[base_indices].set(new_memory_values)
    return advance(state.replace(memory=new_memory)), 605


def execute_load_registers(state: EmulatorState, instruction: DecodedInstruction) -> tuple[EmulatorState, int]:
    """FX65 - Load V0 through VX from memory starting at I."""
    register_mask = register_indices <= instruction.x
    base_indices = state.I + register_indices
    memory_values = state.memory[base_indices]
    new_V = jnp.where(register_mask, memory_values, state.V)
    return advance(state.replace(V=new_V)), 605
