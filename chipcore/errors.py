"""Exceptions raised by the CHIP-8 core.

Every error aborts the current frame and leaves the machine as it was right
before the failing instruction.
"""

import enum
from typing import Optional, Tuple


class Chip8Error(Exception):
    """Base class for all emulator errors."""


class InvalidOp(Chip8Error):
    """Instruction word does not match any known opcode pattern."""

    def __init__(self, words: Tuple[int, int]):
        self.words = tuple(words)
        super().__init__(f"Invalid opcode {self.words[0]:02X}{self.words[1]:02X}")


class RomTooLarge(Chip8Error):
    """ROM does not fit in program memory."""

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(f"ROM is {size} bytes, program memory holds at most {limit}")


class PcOutOfBounds(Chip8Error):
    """Fetch would read past the end of memory."""

    def __init__(self, pc: int):
        self.pc = pc
        super().__init__(f"PC=0x{pc:04X} is outside fetchable memory")


class MemoryOutOfBounds(Chip8Error):
    """Instruction would access memory past 0xFFF through I."""

    def __init__(self, address: int, pc: int):
        self.address = address
        self.pc = pc
        super().__init__(f"Memory access at 0x{address:04X} out of bounds (PC=0x{pc:04X})")


class StackOverflow(Chip8Error):
    """CALL with all stack entries in use."""

    def __init__(self, pc: int):
        self.pc = pc
        super().__init__(f"Stack overflow at PC=0x{pc:04X}")


class StackUnderflow(Chip8Error):
    """RET with an empty stack."""

    def __init__(self, pc: int):
        self.pc = pc
        super().__init__(f"Stack underflow at PC=0x{pc:04X}")


class Debug(Chip8Error):
    """Diagnostic breakpoint marker. Never raised by normal execution."""


class ErrorCode(enum.IntEnum):
    """Why a jitted frame stopped early. Zero means it ran to budget."""
    NONE = 0
    PC_OUT_OF_BOUNDS = 1
    INVALID_OP = 2
    STACK_OVERFLOW = 3
    STACK_UNDERFLOW = 4
    MEMORY_OUT_OF_BOUNDS = 5


def error_from_code(code: int, pc: int, operand: int) -> Optional[Chip8Error]:
    """Build the exception matching a frame's error code, or None.

    `operand` is the instruction word for INVALID_OP, the last address
    touched for MEMORY_OUT_OF_BOUNDS, and unused otherwise.
    """
    code = ErrorCode(code)
    if code == ErrorCode.NONE:
        return None
    if code == ErrorCode.PC_OUT_OF_BOUNDS:
        return PcOutOfBounds(pc)
    if code == ErrorCode.INVALID_OP:
        return InvalidOp(words=(operand >> 8, operand & 0xFF))
    if code == ErrorCode.STACK_OVERFLOW:
        return StackOverflow(pc)
    if code == ErrorCode.STACK_UNDERFLOW:
        return StackUnderflow(pc)
    return MemoryOutOfBounds(operand, pc)
