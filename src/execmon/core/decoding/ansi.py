"""Decoder for SGR (Select Graphic Rendition) escape codes in captured output.

Console output captured from test runs is line buffered, so every line is
decoded independently: style never carries over from one line to the next.

Style markers are CSS utility classes so a rendering layer can use
`StyledSegment.style_class` directly.
"""

import re
from typing import Dict, Iterator, List, Optional, Tuple

from execmon.core.models.segment import StyledSegment

# ESC [ <params> m ; anything else (cursor movement, truncated codes) stays literal
SGR_PATTERN = re.compile(r"\x1b\[([0-9;]*)m")

RESET = 0
BOLD = 1
DIM = 2

# no SGR code is longer than this; longer fields are treated as unknown
MAX_PARAM_DIGITS = 3

# 38 = foreground, 48 = background; mode 5 takes a palette index, mode 2 r;g;b
EXTENDED_COLORS = frozenset({38, 48})
EXTENDED_COLOR_ARGS: Dict[Optional[int], int] = {5: 1, 2: 3}

COLOR_CLASSES: Dict[int, str] = {
    31: "text-red-500",
    32: "text-green-500",
    33: "text-yellow-500",
    34: "text-blue-500",
    35: "text-purple-500",
    36: "text-cyan-500",
    # bright variants render like the standard ones
    91: "text-red-500",
    92: "text-green-500",
    93: "text-yellow-500",
    94: "text-blue-500",
    95: "text-purple-500",
    96: "text-cyan-500",
}

MODIFIER_CLASSES: Dict[int, str] = {
    BOLD: "font-bold",
    DIM: "opacity-70",
}


class _Style:
    """Pending style: at most one colour plus an ordered set of modifiers."""

    __slots__ = ("color", "modifiers")

    def __init__(self) -> None:
        self.color = ""
        self.modifiers: Tuple[str, ...] = ()

    def apply(self, code: Optional[int]) -> None:
        if code == RESET:
            self.color = ""
            self.modifiers = ()
        elif code in COLOR_CLASSES:
            self.color = COLOR_CLASSES[code]
        elif code in MODIFIER_CLASSES:
            marker = MODIFIER_CLASSES[code]
            if marker not in self.modifiers:
                self.modifiers = self.modifiers + (marker,)
        # unknown codes are ignored

    @property
    def css(self) -> str:
        parts = [self.color] if self.color else []
        return " ".join(parts + list(self.modifiers))


def _parse_params(raw: str) -> List[Optional[int]]:
    # "" and "0" both reset; empty fields inside a list ("1;;31") also mean 0.
    # Fields longer than any SGR code are unknown (None).
    if not raw:
        return [RESET]
    return [
        (int(p) if len(p) <= MAX_PARAM_DIGITS else None) if p else RESET
        for p in raw.split(";")
    ]


def _iter_codes(params: List[Optional[int]]) -> Iterator[Optional[int]]:
    """Yield the codes of one sequence, skipping extended colour arguments.

    `38;5;n` and `38;2;r;g;b` (and the `48` background forms) select colours
    outside the supported palette; their arguments are not codes of their own.
    """
    i = 0
    while i < len(params):
        code = params[i]
        i += 1
        if code in EXTENDED_COLORS:
            mode = params[i] if i < len(params) else None
            i += 1 + EXTENDED_COLOR_ARGS.get(mode, 0)
            continue
        yield code


def decode_ansi_line(line: str) -> List[StyledSegment]:
    """Split one line of console output into styled text segments.

    Literal text between escape codes becomes a segment tagged with the style
    in effect before the next code. Zero-length segments are never emitted,
    so a line consisting only of escape codes decodes to an empty list.

    Args:
        line: Raw line, possibly containing `ESC[...m` sequences

    Returns:
        Ordered segments whose texts concatenate to the line minus escape codes
    """
    if not line:
        return []

    segments: List[StyledSegment] = []
    style = _Style()
    last_end = 0

    for match in SGR_PATTERN.finditer(line):
        if match.start() > last_end:
            segments.append(
                StyledSegment(text=line[last_end:match.start()], style_class=style.css)
            )
        for code in _iter_codes(_parse_params(match.group(1))):
            style.apply(code)
        last_end = match.end()

    if last_end < len(line):
        segments.append(StyledSegment(text=line[last_end:], style_class=style.css))

    return segments


def decode_ansi_lines(lines: List[str]) -> List[List[StyledSegment]]:
    """Decode every line independently."""
    return [decode_ansi_line(line) for line in lines]


def strip_ansi(line: str) -> str:
    """Return the visible text of a line with all SGR codes removed."""
    return SGR_PATTERN.sub("", line)
