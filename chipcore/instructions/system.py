"""CHIP-8 system instructions (0x0xxx)."""

import jax.numpy as jnp
from chipcore.state import EmulatorState
from chipcore.decode import DecodedInstruction
from chipcore.stack import pop


def advance(state: EmulatorState, words: int = 1) -> EmulatorState:
    """Move PC past `words` two-byte instructions."""
    return state.replace(pc=jnp.astype(state.pc + 2 * words, jnp.uint16))


def execute_machine_call(state: EmulatorState, instruction: DecodedInstruction) -> tuple[EmulatorState, int]:
    """0NNN - Machine code routine, ignored."""
    return advance(state), 100


def execute_clear_screen(state: EmulatorState, instruction: DecodedInstruction) -> tuple[EmulatorState, int]:
    """00E0 - Clear display."""
    return advance(state.replace(framebuffer=jnp.zeros_like(state.framebuffer))), 109


def execute_return(state: EmulatorState, instruction: DecodedInstruction) -> tuple[EmulatorState, int]:
    """00EE - Return from subroutine."""
    stack, address = pop(state.stack)
    return state.replace(stack=stack, pc=address), 105
