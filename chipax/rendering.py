"""Read-only text view of the CHIP-8 display.

Painting pixels is left to the host; this module only turns the display
buffer into rows of characters for terminals and logs.
"""

import numpy as np


def display_pixels(source) -> np.ndarray:
    """Return the display of ``source`` as a numpy (height, width) bool array.

    ``source`` may be an ``EmulatorState``, a ``Chip8`` machine or a raw
    (64, 32) display buffer.
    """
    display = getattr(source, "display", source)
    return np.array(display, dtype=np.bool_).T


def display_to_text(source, on: str = "█", off: str = "·") -> str:
    """Render the display as one line of text per screen row."""
    return "\n".join("".join(on if pixel else off for pixel in row) for row in display_pixels(source))
