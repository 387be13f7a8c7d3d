"""Main CHIP-8 emulator execution engine."""

from typing import Dict

import jax
import jax.lax
import jax.numpy as jnp
import numpy as np
from flax.struct import PyTreeNode, field

from chipcore.state import EmulatorState
from chipcore.decode import INVALID, DecodedInstruction, Op, decode, decode_word
from chipcore.constants import (
    PROGRAM_START, MAX_ROM_SIZE, MAX_FETCH_ADDRESS, MEMORY_SIZE, NUM_REGISTERS, STACK_SIZE, FRAME_BUDGET_US,
    KEYPAD_MASK
)
from chipcore.errors import (
    ErrorCode, RomTooLarge, PcOutOfBounds, MemoryOutOfBounds, StackOverflow, StackUnderflow, error_from_code
)
from chipcore.instructions.system import execute_machine_call, execute_clear_screen, execute_return
from chipcore.instructions.control_flow import (
    execute_jump, execute_call, execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate, execute_skip_if_equal_register,
    execute_skip_if_not_equal_register, execute_jump_with_offset,
    execute_skip_if_key, execute_skip_if_not_key
)
from chipcore.instructions.alu import (
    execute_alu_set, execute_alu_or, execute_alu_and, execute_alu_xor, execute_alu_add,
    execute_alu_sub_xy, execute_alu_shift_right, execute_alu_sub_yx, execute_alu_shift_left
)
from chipcore.instructions.memory import execute_set, execute_add, execute_set_index, execute_random
from chipcore.instructions.display import execute_display
from chipcore.instructions.misc import (
    execute_get_delay_timer, execute_wait_for_key, execute_set_delay_timer, execute_set_sound_timer,
    execute_add_to_index, execute_font_character, execute_bcd_conversion,
    execute_store_registers, execute_load_registers
)

# Indexed by Op value
HANDLERS = [
    execute_machine_call,
    execute_clear_screen,
    execute_return,
    execute_jump,
    execute_call,
    execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate,
    execute_skip_if_equal_register,
    execute_set,
    execute_add,
    execute_alu_set,
    execute_alu_or,
    execute_alu_and,
    execute_alu_xor,
    execute_alu_add,
    execute_alu_sub_xy,
    execute_alu_shift_right,
    execute_alu_sub_yx,
    execute_alu_shift_left,
    execute_skip_if_not_equal_register,
    execute_set_index,
    execute_jump_with_offset,
    execute_random,
    execute_display,
    execute_skip_if_key,
    execute_skip_if_not_key,
    execute_get_delay_timer,
    execute_wait_for_key,
    execute_set_delay_timer,
    execute_set_sound_timer,
    execute_add_to_index,
    execute_font_character,
    execute_bcd_conversion,
    execute_store_registers,
    execute_load_registers,
]

assert len(HANDLERS) == len(Op)


@jax.jit
def execute(state: EmulatorState, instruction: DecodedInstruction) -> tuple[EmulatorState, jnp.ndarray]:
    """Execute a single decoded instruction.

    Returns the new state and the instruction cost in microseconds. No bounds
    checking happens here, see :func:`check_instruction`.
    """
    return jax.lax.switch(instruction.op, HANDLERS, state, instruction)


def _pack_u16(high: int, low: int) -> int:
    """Pack two bytes into uint16."""
    return (high << 8) | low


def fetch(state: EmulatorState) -> int:
    """Read the instruction word at PC.

    Raises:
        PcOutOfBounds: if PC + 1 lies past the end of memory.
    """
    pc = int(state.pc)
    if pc > MAX_FETCH_ADDRESS:
        raise PcOutOfBounds(pc)
    memory = np.asarray(state.memory)
    return _pack_u16(int(memory[pc]), int(memory[pc + 1]))


def _check_memory_span(state: EmulatorState, length: int):
    if length <= 0:
        return
    last_address = int(state.I) + length - 1
    if last_address >= MEMORY_SIZE:
        raise MemoryOutOfBounds(last_address, int(state.pc))


def check_instruction(state: EmulatorState, instruction: DecodedInstruction):
    """Reject instructions that would step outside the stack or memory.

    Runs before anything is mutated so a failing instruction leaves no trace.
    Hand-built instructions whose register operands are not 4-bit indices
    raise ValueError.
    """
    if not (0 <= instruction.x < NUM_REGISTERS and 0 <= instruction.y < NUM_REGISTERS):
        raise ValueError(f"Register operands must be 0..15, got x={instruction.x} y={instruction.y}")
    op = instruction.operation
    if op == Op.CALL and int(state.stack.pointer) >= STACK_SIZE:
        raise StackOverflow(int(state.pc))
    if op == Op.RET and int(state.stack.pointer) == 0:
        raise StackUnderflow(int(state.pc))
    if op == Op.DRW:
        _check_memory_span(state, instruction.n)
    elif op == Op.LD_B:
        _check_memory_span(state, 3)
    elif op in (Op.LD_MEM_VX, Op.LD_VX_MEM):
        _check_memory_span(state, instruction.x + 1)


def step(state: EmulatorState) -> tuple[EmulatorState, DecodedInstruction, int]:
    """Fetch, decode and execute one instruction, charging its cost to the budget."""
    instruction = decode(fetch(state))
    check_instruction(state, instruction)
    state, cost = execute(state, instruction)
    cost = int(cost)
    return state.replace(budget=state.budget - cost), instruction, cost


@jax.jit
def _begin_frame(state: EmulatorState, keypad: jnp.ndarray) -> EmulatorState:
    sound_running = state.sound_timer != 0
    return state.replace(
        keypad=keypad,
        delay_timer=jnp.where(state.delay_timer != 0, state.delay_timer - 1, state.delay_timer),
        sound_timer=jnp.where(sound_running, state.sound_timer - 1, state.sound_timer),
        tone=sound_running,
        budget=state.budget + FRAME_BUDGET_US,
    )


def begin_frame(state: EmulatorState, keypad_mask: int) -> EmulatorState:
    """Latch the keypad, tick both timers and grant one frame of time budget."""
    if not isinstance(keypad_mask, (int, np.integer)):
        raise TypeError(f"Keypad mask must be an integer, got {type(keypad_mask).__name__}")
    if not 0 <= keypad_mask <= KEYPAD_MASK:
        raise ValueError(f"Keypad mask must fit in 16 bits, got {keypad_mask!r}")
    return _begin_frame(state, jnp.asarray(keypad_mask, dtype=jnp.uint16))


class FrameStats(PyTreeNode):
    """What one jitted frame did.

    Attributes:
        instructions: Instructions executed, the failing one excluded
        elapsed_us: Cost charged to the budget during the frame
        op_counts: Executions per Op value
        error: ErrorCode that stopped the frame, or ErrorCode.NONE
        error_operand: Word or address the error refers to
    """
    instructions: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.int32))
    elapsed_us: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.int32))
    op_counts: jnp.ndarray = field(default_factory=lambda: jnp.zeros(len(Op), dtype=jnp.int32))
    error: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    error_operand: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.int32))


def _fetch_word(state: EmulatorState) -> jnp.ndarray:
    pc = jnp.minimum(jnp.astype(state.pc, jnp.int32), MAX_FETCH_ADDRESS)
    high = jnp.astype(state.memory[pc], jnp.int32)
    low = jnp.astype(state.memory[pc + 1], jnp.int32)
    return (high << 8) | low


def _memory_span(instruction: DecodedInstruction) -> jnp.ndarray:
    """Bytes an instruction touches through I, zero if it does not."""
    op = instruction.op
    register_copy = (op == int(Op.LD_MEM_VX)) | (op == int(Op.LD_VX_MEM))
    span = jnp.where(op == int(Op.DRW), jnp.astype(instruction.n, jnp.int32), 0)
    span = jnp.where(op == int(Op.LD_B), 3, span)
    return jnp.where(register_copy, jnp.astype(instruction.x, jnp.int32) + 1, span)


def _instruction_error(state: EmulatorState, instruction: DecodedInstruction) -> tuple[jnp.ndarray, jnp.ndarray]:
    """Traceable version of the fetch, decode and :func:`check_instruction` checks.

    Returns the first failing ErrorCode in that order, and its operand.
    """
    pc = jnp.astype(state.pc, jnp.int32)
    op = instruction.op
    pointer = state.stack.pointer
    span = _memory_span(instruction)
    last_address = jnp.astype(state.I, jnp.int32) + span - 1

    checks = [
        (pc > MAX_FETCH_ADDRESS, ErrorCode.PC_OUT_OF_BOUNDS, pc),
        (op == INVALID, ErrorCode.INVALID_OP, instruction.raw),
        ((op == int(Op.CALL)) & (pointer >= STACK_SIZE), ErrorCode.STACK_OVERFLOW, pc),
        ((op == int(Op.RET)) & (pointer == 0), ErrorCode.STACK_UNDERFLOW, pc),
        ((span > 0) & (last_address >= MEMORY_SIZE), ErrorCode.MEMORY_OUT_OF_BOUNDS, last_address),
    ]
    error = jnp.zeros((), dtype=jnp.uint8)
    operand = jnp.zeros((), dtype=jnp.int32)
    # Walk backwards so the earliest failing check wins
    for failed, code, value in reversed(checks):
        error = jnp.where(failed, jnp.uint8(int(code)), error)
        operand = jnp.where(failed, value, operand)
    return error, operand


def _halt(state: EmulatorState, instruction: DecodedInstruction) -> tuple[EmulatorState, int]:
    return state, 0


def _frame_running(carry: tuple[EmulatorState, FrameStats]) -> jnp.ndarray:
    state, stats = carry
    return (state.budget > 0) & (stats.error == int(ErrorCode.NONE))


def _frame_step(carry: tuple[EmulatorState, FrameStats]) -> tuple[EmulatorState, FrameStats]:
    state, stats = carry
    instruction = decode_word(_fetch_word(state))
    error, operand = _instruction_error(state, instruction)
    ok = error == int(ErrorCode.NONE)
    branch = jnp.where(ok, instruction.op, len(HANDLERS))

    state, cost = jax.lax.switch(branch, HANDLERS + [_halt], state, instruction)
    cost = jnp.astype(cost, jnp.int32)
    state = state.replace(budget=state.budget - cost)
    executed = jnp.astype(ok, jnp.int32)
    return state, stats.replace(
        instructions=stats.instructions + executed,
        elapsed_us=stats.elapsed_us + cost,
        op_counts=stats.op_counts.at[jnp.minimum(branch, len(Op) - 1)].add(executed),
        error=error,
        error_operand=operand,
    )


@jax.jit
def _run_budget(state: EmulatorState) -> tuple[EmulatorState, FrameStats]:
    return jax.lax.while_loop(_frame_running, _frame_step, (state, FrameStats()))


def run_frame(state: EmulatorState, keypad_mask: int) -> tuple[EmulatorState, FrameStats]:
    """Run one display frame inside a single jitted loop.

    Calls :func:`begin_frame`, then executes instructions while budget is
    left. An instruction that would fail stops the loop before it changes
    anything and is not charged; its error is reported through
    ``stats.error`` rather than raised, see :func:`raise_for_stats`.
    """
    state = begin_frame(state, keypad_mask)
    return _run_budget(state)


def raise_for_stats(state: EmulatorState, stats: FrameStats):
    """Raise the Chip8Error recorded by :func:`run_frame`, if any."""
    error = error_from_code(int(stats.error), int(state.pc), int(stats.error_operand))
    if error is not None:
        raise error


def op_counts(stats: FrameStats) -> Dict[Op, int]:
    """Nonzero per-Op execution counts of a frame."""
    counts = np.asarray(stats.op_counts)
    return {Op(value): int(count) for value, count in enumerate(counts) if count}


def load_program(state: EmulatorState, rom: bytes) -> EmulatorState:
    """Copy ROM bytes into memory starting at 0x200.

    Raises:
        RomTooLarge: if the ROM does not fit between 0x200 and the end of memory.
    """
    rom = bytes(rom)
    if len(rom) > MAX_ROM_SIZE:
        raise RomTooLarge(len(rom), MAX_ROM_SIZE)
    rom_array = jnp.asarray(np.frombuffer(rom, dtype=np.uint8))
    new_memory = state.memory.at[PROGRAM_START:PROGRAM_START + len(rom)].set(rom_array)
    return state.replace(memory=new_memory)


def load_rom(state: EmulatorState, filename: str) -> EmulatorState:
    """Load ROM data from a file into CHIP-8 memory starting at 0x200."""
    with open(filename, 'rb') as f:
        rom_data = f.read()
    return load_program(state, rom_data)
