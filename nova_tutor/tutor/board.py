"""
Nova Tutor v9.0 - Board Commands

The closed set of drawing directives the tutor emits. Rendering happens
elsewhere (whiteboard canvas, test recorder); the state machine never
draws anything itself.
"""

import logging
from dataclasses import dataclass, field
from typing import Protocol, Union

logger = logging.getLogger("nova.board")


# ─── Directives ──────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Clear:
    pass


@dataclass(frozen=True)
class DrawStructuralLayout:
    """Problem skeleton: 'division', 'column_addition', 'number_bond', 'bar_model', ..."""
    kind: str
    operands: tuple = ()
    style: str = "colombia"
    label: str = ""


@dataclass(frozen=True)
class WriteQuotientDigit:
    value: int
    index: int = 0


@dataclass(frozen=True)
class WriteProduct:
    value: int


@dataclass(frozen=True)
class WriteRemainder:
    value: int


@dataclass(frozen=True)
class WriteFinalAnswer:
    value: int


@dataclass(frozen=True)
class HighlightRegion:
    """rect is (x, y, width, height) in board units."""
    rect: tuple = (100, 100, 200, 100)


BoardDirective = Union[
    Clear,
    DrawStructuralLayout,
    WriteQuotientDigit,
    WriteProduct,
    WriteRemainder,
    WriteFinalAnswer,
    HighlightRegion,
]

DIRECTIVE_TYPES = (
    Clear, DrawStructuralLayout, WriteQuotientDigit, WriteProduct,
    WriteRemainder, WriteFinalAnswer, HighlightRegion,
)

_DIRECTIVE_NAMES = {
    Clear: "clear",
    DrawStructuralLayout: "draw_structural_layout",
    WriteQuotientDigit: "write_quotient_digit",
    WriteProduct: "write_product",
    WriteRemainder: "write_remainder",
    WriteFinalAnswer: "write_final_answer",
    HighlightRegion: "highlight_region",
}


def directive_to_dict(directive: BoardDirective) -> dict:
    """Wire form for the presentation layer: {"type": ..., **fields}."""
    if not isinstance(directive, DIRECTIVE_TYPES):
        raise TypeError(f"Not a board directive: {directive!r}")
    payload = {"type": _DIRECTIVE_NAMES[type(directive)]}
    payload.update({k: (list(v) if isinstance(v, tuple) else v)
                    for k, v in directive.__dict__.items()})
    return payload


# ─── Board Port ──────────────────────────────────────────────────────────────

class Board(Protocol):
    def apply(self, directive: BoardDirective) -> None: ...


@dataclass
class RecordingBoard:
    """Keeps every directive in order. Used by the HTTP layer and in tests."""
    history: list = field(default_factory=list)

    def apply(self, directive: BoardDirective) -> None:
        logger.debug(f"Board: {directive}")
        self.history.append(directive)

    def drain(self) -> list:
        """Return and forget everything applied since the last drain."""
        out, self.history = self.history, []
        return out
