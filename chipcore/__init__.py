"""CHIP-8 interpreter core."""

from chipcore.state import EmulatorState, StackState, create_state
from chipcore.emulator import FrameStats, execute, fetch, step, begin_frame, run_frame, load_program, load_rom
from chipcore.decode import DecodedInstruction, Op, decode, decode_word, hi_nib, lo_nib
from chipcore.errors import (
    Chip8Error, ErrorCode, InvalidOp, RomTooLarge, PcOutOfBounds, MemoryOutOfBounds, StackOverflow, StackUnderflow,
    Debug
)
from chipcore.machine import Machine
from chipcore.constants import *
from chipcore.rendering import unpack_framebuffer, framebuffer_to_rgb, framebuffer_to_text, create_color_scheme

__all__ = [
    "EmulatorState",
    "StackState",
    "create_state",
    "fetch",
    "execute",
    "step",
    "begin_frame",
    "run_frame",
    "FrameStats",
    "load_program",
    "load_rom",
    "DecodedInstruction",
    "Op",
    "decode",
    "decode_word",
    "hi_nib",
    "lo_nib",
    "Chip8Error",
    "ErrorCode",
    "InvalidOp",
    "RomTooLarge",
    "PcOutOfBounds",
    "MemoryOutOfBounds",
    "StackOverflow",
    "StackUnderflow",
    "Debug",
    "Machine",
    "PROGRAM_START",
    "FONT_START",
    "SCREEN_WIDTH",
    "SCREEN_HEIGHT",
    "FRAME_BUDGET_US",
    "unpack_framebuffer",
    "framebuffer_to_rgb",
    "framebuffer_to_text",
    "create_color_scheme",
]
