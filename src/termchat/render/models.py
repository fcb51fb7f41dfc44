from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class BlockKind(str, Enum):
    """Kind of span found in a response."""

    PLAIN = "plain"  # Prose, passed through
    CODE = "code"    # Fenced code block, drawn as a box


class RenderedBlock(BaseModel):
    """A contiguous span of response text.

    Plain blocks keep their text verbatim. Code blocks keep the language
    tag, the original body lines and the border width chosen for them.
    """

    model_config = ConfigDict(frozen=True)

    kind: BlockKind
    text: str = Field(description="Source text of the span, fences included for code")
    language: str | None = Field(default=None, description="Language tag of a code block")
    lines: list[str] = Field(default_factory=list, description="Body lines of a code block")
    border_width: int | None = Field(default=None, description="Total box width in columns")
