"""Test configuration and fixtures for CHIP-8 emulator tests."""

import pytest
import jax.numpy as jnp
from chipcore import create_state, decode, execute, Machine, unpack_framebuffer
from chipcore.emulator import check_instruction


@pytest.fixture
def fresh_state():
    """Provide a fresh emulator state for each test."""
    return create_state()


@pytest.fixture
def machine():
    """Provide a fresh machine with no program loaded."""
    return Machine(seed=0)


def run(state, instruction):
    """Execute one raw instruction word, returning the new state.

    PC is not used to fetch the word, but handlers still move it.
    """
    state, _ = run_with_cost(state, instruction)
    return state


def run_with_cost(state, instruction):
    decoded = decode(instruction)
    check_instruction(state, decoded)
    state, cost = execute(state, decoded)
    return state, int(cost)


def set_registers(state, **registers):
    """Helper to set registers by name, e.g. set_registers(state, V1=0x10, VF=1)."""
    V = state.V
    for name, value in registers.items():
        V = V.at[int(name[1:], 16)].set(value)
    return state.replace(V=V)


def setup_sprite_in_memory(state, address, sprite_bytes):
    """Helper to put sprite data in memory."""
    return state.replace(
        memory=state.memory.at[address:address+len(sprite_bytes)].set(
            jnp.array(sprite_bytes, dtype=jnp.uint8)
        )
    )


def program(*words):
    """Assemble instruction words into ROM bytes."""
    return b"".join(word.to_bytes(2, "big") for word in words)


def pixel(state, x, y):
    return bool(unpack_framebuffer(state.framebuffer)[y, x])


def press(state, *keys):
    """Helper to replace the keypad mask with the given held keys."""
    mask = 0
    for key in keys:
        mask |= 1 << key
    return state.replace(keypad=jnp.asarray(mask, dtype=jnp.uint16))
