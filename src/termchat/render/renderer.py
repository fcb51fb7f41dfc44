"""Response rendering for the terminal.

Splits a reply into prose and fenced code blocks and draws each code
block as a bordered box sized to the terminal. Pure: no I/O.
"""

import re

from rich.text import Text

from . import boxes
from .models import BlockKind, RenderedBlock

DEFAULT_LANGUAGE = "text"

AMBIENT_STYLE = "cyan"
BORDER_STYLE = "bright_black"
LABEL_STYLE = "cyan"
CODE_STYLE = "white"

# Opening fence, optional language tag, newline, body, closing fence.
# A fence with no closing marker never matches and stays plain text.
FENCE_PATTERN = re.compile(r"```([\w+#.-]*)[ \t]*\n(.*?)```", re.DOTALL)


def _body_lines(body: str) -> list[str]:
    if not body:
        return []
    if body.endswith("\n"):
        body = body[:-1]
    return body.split("\n")


def partition(raw_text: str, terminal_width: int = 80) -> list[RenderedBlock]:
    """Split raw text into plain and code blocks, in original order."""
    blocks = []
    position = 0

    for match in FENCE_PATTERN.finditer(raw_text):
        if match.start() > position:
            blocks.append(RenderedBlock(
                kind=BlockKind.PLAIN,
                text=raw_text[position:match.start()],
            ))

        language = match.group(1) or DEFAULT_LANGUAGE
        lines = _body_lines(match.group(2))
        blocks.append(RenderedBlock(
            kind=BlockKind.CODE,
            text=match.group(0),
            language=language,
            lines=lines,
            border_width=boxes.border_width(lines, language, terminal_width),
        ))
        position = match.end()

    if position < len(raw_text):
        blocks.append(RenderedBlock(kind=BlockKind.PLAIN, text=raw_text[position:]))

    return blocks


def _append_row(text: Text, content: str, border: int, style: str) -> None:
    text.append("│ ", style=BORDER_STYLE)
    text.append(boxes.pad(content, border), style=style)
    text.append(" │\n", style=BORDER_STYLE)


def _append_box(text: Text, block: RenderedBlock) -> None:
    border = block.border_width
    interior = boxes.interior_width(border)

    text.append("\n")
    text.append(boxes.horizontal("┌", "┐", border) + "\n", style=BORDER_STYLE)
    _append_row(text, boxes.fit_label(block.language, border), border, LABEL_STYLE)
    text.append(boxes.horizontal("├", "┤", border) + "\n", style=BORDER_STYLE)
    for line in block.lines:
        for fragment in boxes.wrap_line(line, interior):
            _append_row(text, fragment, border, CODE_STYLE)
    text.append(boxes.horizontal("└", "┘", border) + "\n", style=BORDER_STYLE)


def render_text(raw_text: str, terminal_width: int) -> Text:
    """Render a reply as styled rich Text."""
    text = Text()
    for block in partition(raw_text, terminal_width):
        if block.kind == BlockKind.CODE:
            _append_box(text, block)
        else:
            text.append(block.text, style=AMBIENT_STYLE)
    return text


def render(raw_text: str, terminal_width: int) -> str:
    """Render a reply as the plain string shown on the terminal."""
    return render_text(raw_text, terminal_width).plain
