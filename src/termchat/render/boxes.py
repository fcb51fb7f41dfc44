"""Box geometry for fenced code blocks.

Hides the sizing rules (margins, padding, the minimum box width) and the
word-wrap policy used when a code line is wider than the box.
"""

MIN_AVAILABLE_WIDTH = 40  # Floor when the terminal is tiny or unreported
TERMINAL_MARGIN = 4
LINE_PADDING = 8          # Border glyphs plus padding around the longest line
LABEL_PADDING = 12        # Room around the language label
BORDER_COLUMNS = 4        # "│ " on the left and " │" on the right
MIN_WORD_BREAK = 4        # A space must sit within this many columns of the edge


def available_width(terminal_width: int) -> int:
    return max(terminal_width - TERMINAL_MARGIN, MIN_AVAILABLE_WIDTH)


def border_width(lines: list[str], language: str, terminal_width: int) -> int:
    """Total box width for a code body.

    Wide enough for the longest line and the label, capped by the
    available terminal width.
    """
    longest = max((len(line) for line in lines), default=0)
    wanted = max(longest + LINE_PADDING, len(language) + LABEL_PADDING)
    return min(wanted, available_width(terminal_width))


def interior_width(border: int) -> int:
    return border - BORDER_COLUMNS


def wrap_line(line: str, interior: int) -> list[str]:
    """Split a line into fragments no wider than interior.

    Breaks after the last space in the window when that space is close
    enough to the edge; otherwise breaks hard at the interior width.
    Spaces stay attached to the fragment they end, so joining the
    fragments gives back the original line.

    >>> wrap_line("alpha beta gamma", 12)
    ['alpha beta ', 'gamma']
    """
    if len(line) <= interior:
        return [line]

    fragments = []
    rest = line
    while len(rest) > interior:
        chunk = rest[:interior]
        if not chunk.endswith(" "):
            last_space = chunk.rfind(" ")
            if last_space > interior - MIN_WORD_BREAK:
                chunk = chunk[: last_space + 1]
        fragments.append(chunk)
        rest = rest[len(chunk):]
    if rest:
        fragments.append(rest)
    return fragments


def horizontal(left: str, right: str, border: int) -> str:
    return left + "─" * (border - 2) + right


def fit_label(language: str, border: int) -> str:
    """Upper-cased label, cut to the interior if the box is capped."""
    return language.upper()[: interior_width(border)]


def pad(content: str, border: int) -> str:
    """Right-pad content to fill the interior."""
    return content + " " * (interior_width(border) - len(content))
