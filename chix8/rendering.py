"""Turn the CHIP-8 framebuffer into RGB images for host shells."""

import jax.numpy as jnp
import numpy as np
from typing import Tuple

Color = Tuple[int, int, int]

# (on, off) pixel colours
COLOR_SCHEMES = {
    "classic": ((0, 255, 0), (0, 0, 0)),  # Green phosphor
    "amber": ((255, 176, 0), (0, 0, 0)),
    "cosmac": ((255, 255, 255), (0, 0, 0)),  # VIP on a black-and-white TV
    "lcd": ((40, 48, 32), (150, 170, 110)),  # HP 48 calculator screen
    "paper": ((24, 24, 24), (240, 236, 224)),
}


def chip8_display_to_rgb(
    display: jnp.ndarray,
    scale: int = 8,
    on_color: Color = COLOR_SCHEMES["classic"][0],
    off_color: Color = COLOR_SCHEMES["classic"][1],
) -> np.ndarray:
    """Render the (64, 32) boolean display as a (32 * scale, 64 * scale, 3) uint8 image.

    The display is indexed [x, y]; the image is row-major, so it comes out
    transposed. Each pixel becomes a ``scale`` x ``scale`` block.
    """
    if scale < 1:
        raise ValueError(f"Scale must be a positive integer, got {scale}")

    palette = np.array([off_color, on_color], dtype=np.uint8)
    rows = np.asarray(display, dtype=np.bool_).T
    block = np.ones((scale, scale), dtype=np.intp)
    return palette[np.kron(rows.astype(np.intp), block)]


def create_color_scheme(scheme: str = "classic") -> Tuple[Color, Color]:
    """Look up the (on_color, off_color) pair of a named scheme in ``COLOR_SCHEMES``."""
    try:
        return COLOR_SCHEMES[scheme]
    except KeyError:
        raise ValueError(
            f"Unknown color scheme '{scheme}'. Available: {list(COLOR_SCHEMES)}"
        ) from None
