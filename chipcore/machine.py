"""Stateful driver owning one emulated CHIP-8 session."""

from typing import Optional, Sequence

import numpy as np

from chipcore.state import EmulatorState, create_state
from chipcore.emulator import load_program, op_counts, raise_for_stats, run_frame
from chipcore.errors import Chip8Error
from chipcore.logging import ConsoleLogger, FrameCallback, notify


class Machine:
    """One CHIP-8 session, driven a frame at a time by the host.

    The machine owns an :class:`EmulatorState` and swaps it after every
    frame. When an instruction fails, the state keeps everything done before
    it in the frame and the error propagates to the caller.

    Example:
        >>> machine = Machine(seed=1234)
        >>> machine.load_program(rom_bytes)
        >>> machine.run_frame(keypad_mask=0b0000_0000_0001_0000)
        >>> pixels, beep = machine.framebuffer, machine.tone
    """

    def __init__(
        self,
        seed: int = 0,
        logger: Optional[ConsoleLogger] = None,
        callbacks: Sequence[FrameCallback] = (),
    ):
        """Create a machine with fresh state.

        Args:
            seed: 64-bit seed for the random number generator used by CXNN
            logger: Logger for lifecycle messages. Defaults to warnings and up on stdout.
            callbacks: Callbacks notified on load, executed ops, frame and error
        """
        self.state: EmulatorState = create_state(seed)
        self.seed = seed
        self.logger = logger or ConsoleLogger("chipcore", log_level="WARNING")
        self.callbacks = list(callbacks)
        self.frame_count = 0
        self.instruction_count = 0

    def load_program(self, rom: bytes):
        """Copy ROM bytes to 0x200. Raises RomTooLarge if they do not fit."""
        try:
            self.state = load_program(self.state, rom)
        except Chip8Error as error:
            self.logger.error(str(error))
            raise
        self.logger.info(f"Loaded {len(rom)} bytes at 0x200")
        notify(self.callbacks, "on_load", self, len(rom))

    def load_rom(self, filename: str):
        """Read a ROM file and load it at 0x200."""
        with open(filename, "rb") as f:
            rom = f.read()
        self.logger.info(f"Reading ROM '{filename}'")
        self.load_program(rom)

    def run_frame(self, keypad_mask: int = 0):
        """Emulate one display frame.

        Latches the keypad, ticks the timers, then executes instructions until
        the frame's time budget is spent. The whole loop runs under jit.

        Raises:
            Chip8Error: the first error met during the frame. Instructions
                completed before it are kept.
        """
        self.state, stats = run_frame(self.state, keypad_mask)
        executed = int(stats.instructions)
        elapsed = int(stats.elapsed_us)
        self.instruction_count += executed
        notify(self.callbacks, "on_executed", self, op_counts(stats), elapsed)
        try:
            raise_for_stats(self.state, stats)
        except Chip8Error as error:
            self.logger.error(f"Frame {self.frame_count} halted after {executed} instructions: {error}")
            notify(self.callbacks, "on_error", self, error)
            raise
        self.frame_count += 1
        self.logger.debug(f"Frame {self.frame_count}: {executed} instructions, {elapsed}us")
        notify(self.callbacks, "on_frame", self, executed, elapsed)

    @property
    def framebuffer(self) -> np.ndarray:
        """Packed 64x32 framebuffer, 256 bytes, row-major, MSB first."""
        return np.asarray(self.state.framebuffer).copy()

    @property
    def tone(self) -> bool:
        """Whether the buzzer should sound this frame."""
        return bool(self.state.tone)

    @property
    def pc(self) -> int:
        return int(self.state.pc)
