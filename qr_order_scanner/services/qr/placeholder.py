"""
Lightweight QR-looking SVG. It is NOT a scannable code; it is kept for
clients that only need a visual stand-in (render=placeholder).
"""
from html import escape
from typing import List

GRID_SIZE = 25


def simple_hash(text: str) -> int:
    """h = h*31 + c over the string, wrapped to signed 32-bit, absolute value."""
    h = 0
    for ch in text:
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


def _n(value: float) -> str:
    value = float(value)
    return str(int(value)) if value.is_integer() else repr(value)


def _rect(x: float, y: float, w: float, h: float, fill: str) -> str:
    return f'<rect x="{_n(x)}" y="{_n(y)}" width="{_n(w)}" height="{_n(h)}" fill="{fill}"/>'


def _finder(x0: float, y0: float, cell: float) -> List[str]:
    return [
        _rect(x0, y0, cell * 7, cell * 7, "black"),
        _rect(x0 + cell, y0 + cell, cell * 5, cell * 5, "white"),
        _rect(x0 + cell * 2, y0 + cell * 2, cell * 3, cell * 3, "black"),
    ]


def render_placeholder_svg(data: str, size: int = 200) -> str:
    cell = size / GRID_SIZE

    parts = [f'<svg width="{size}" height="{size}" xmlns="http://www.w3.org/2000/svg">']
    parts.append(f'<rect width="{size}" height="{size}" fill="white"/>')

    for y in range(GRID_SIZE):
        for x in range(GRID_SIZE):
            if simple_hash(f"{data}{x}{y}") % 2 == 0:
                parts.append(_rect(x * cell, y * cell, cell, cell, "black"))

    far = cell * (GRID_SIZE - 7)
    parts.extend(_finder(0, 0, cell))
    parts.extend(_finder(far, 0, cell))
    parts.extend(_finder(0, far, cell))

    caption = escape(data.replace("#", "", 1))
    parts.append(
        f'<text x="{_n(size / 2)}" y="{_n(size - 10)}" text-anchor="middle" '
        f'font-family="Arial" font-size="10" fill="gray">Order #{caption}</text>'
    )
    parts.append("</svg>")
    return "\n".join(parts)
