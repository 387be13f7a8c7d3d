"""Framebuffer conversion helpers for hosts that display the CHIP-8 screen."""

from typing import Tuple

import numpy as np

from chipcore.constants import SCREEN_WIDTH, SCREEN_HEIGHT, FRAMEBUFFER_SIZE


def unpack_framebuffer(framebuffer) -> np.ndarray:
    """Expand the packed framebuffer to a boolean (32, 64) pixel grid.

    Args:
        framebuffer: 256 packed bytes, row-major, MSB is the leftmost pixel

    Returns:
        Boolean array indexed as [row, column]
    """
    packed = np.asarray(framebuffer, dtype=np.uint8)
    if packed.shape != (FRAMEBUFFER_SIZE,):
        raise ValueError(f"Expected {FRAMEBUFFER_SIZE} packed bytes, got shape {packed.shape}")
    return np.unpackbits(packed, bitorder="big").reshape(SCREEN_HEIGHT, SCREEN_WIDTH).astype(np.bool_)


def create_color_scheme(
    scheme: str = "classic",
) -> Tuple[Tuple[int, int, int], Tuple[int, int, int]]:
    """Get predefined color schemes for CHIP-8 rendering.

    Args:
        scheme: Color scheme name ("classic", "amber", "white", "blue", "retro")

    Returns:
        Tuple of (on_color, off_color) as RGB tuples
    """
    schemes = {
        "classic": ((0, 255, 0), (0, 0, 0)),  # Green on black
        "amber": ((255, 176, 0), (0, 0, 0)),  # Amber on black
        "white": ((255, 255, 255), (0, 0, 0)),  # White on black
        "blue": ((0, 255, 255), (0, 0, 64)),  # Cyan on dark blue
        "retro": ((255, 255, 0), (64, 0, 64)),  # Yellow on purple
    }

    if scheme not in schemes:
        raise ValueError(
            f"Unknown color scheme '{scheme}'. Available: {list(schemes.keys())}"
        )

    return schemes[scheme]


def framebuffer_to_rgb(
    framebuffer,
    scale: int = 8,
    on_color: Tuple[int, int, int] = (0, 255, 0),
    off_color: Tuple[int, int, int] = (0, 0, 0),
) -> np.ndarray:
    """Convert the packed framebuffer to an RGB array with optional upscaling.

    Returns:
        RGB array of shape (32*scale, 64*scale, 3) with uint8 values
    """
    if scale < 1:
        raise ValueError(f"Scale must be at least 1, got {scale}")
    pixels = unpack_framebuffer(framebuffer)

    rgb_frame = np.zeros((*pixels.shape, 3), dtype=np.uint8)
    rgb_frame[pixels] = on_color
    rgb_frame[~pixels] = off_color

    # Nearest neighbour upscaling
    if scale > 1:
        rgb_frame = np.repeat(np.repeat(rgb_frame, scale, axis=0), scale, axis=1)

    return rgb_frame


def framebuffer_to_text(framebuffer, on: str = "#", off: str = ".") -> str:
    """Render the framebuffer as 32 lines of text, handy in a terminal or a test failure."""
    pixels = unpack_framebuffer(framebuffer)
    return "\n".join("".join(on if lit else off for lit in row) for row in pixels)
