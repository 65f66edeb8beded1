"""Track colour parsing and formatting.

Accepts the spellings X11/GDK tools emit: `#rgb`, `#rrggbb`, `#rrrgggbbb`,
`#rrrrggggbbbb` and colour names. Always written back as `#rrggbb`.
"""

from __future__ import annotations

import re

from PIL import ImageColor

_WIDE_HEX_RE = re.compile(r"^#(?:[0-9a-fA-F]{9}|[0-9a-fA-F]{12})$")


def parse_color(text: str | None) -> tuple[int, int, int] | None:
    """Parse a colour string to an (r, g, b) tuple of 0-255 ints.

    Returns None when the text is not a recognised colour.
    """
    if not text:
        return None
    text = text.strip()

    # 3 or 4 hex digits per channel: keep the most significant byte
    if _WIDE_HEX_RE.match(text):
        digits = text[1:]
        width = len(digits) // 3
        return tuple(
            int(digits[i * width:(i + 1) * width], 16) >> (4 * (width - 2))
            for i in range(3)
        )

    try:
        rgb = ImageColor.getrgb(text)
    except ValueError:
        return None
    return rgb[0], rgb[1], rgb[2]


def format_color(rgb: tuple[int, int, int]) -> str:
    """Format an (r, g, b) tuple as `#rrggbb`."""
    r, g, b = rgb
    return f"#{r:02x}{g:02x}{b:02x}"
