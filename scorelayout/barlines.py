"""Staff lines and barline geometry."""

from __future__ import annotations

from scorelayout.constants import (
    BARLINE_GAP,
    BARLINE_THICK_WIDTH,
    BARLINE_THIN_WIDTH,
    NUM_STAFF_LINES,
    STAVE_LINE_DISTANCE,
)
from scorelayout.layout_models import LayoutBarline, LayoutLine, LayoutRect
from scorelayout.pitch import get_y_for_line

STAFF_HEIGHT = (NUM_STAFF_LINES - 1) * STAVE_LINE_DISTANCE


def staff_lines(width: float, stave_y: float = 0.0) -> tuple[LayoutLine, ...]:
    """Five parallel lines across the whole page."""
    return tuple(
        LayoutLine(x1=0.0, y1=get_y_for_line(i, stave_y), x2=width, y2=get_y_for_line(i, stave_y))
        for i in range(NUM_STAFF_LINES)
    )


def barline_strokes(x: float, y: float, barline_type: str) -> tuple[LayoutRect, ...]:
    """Filled rectangles making up a barline whose left edge is at ``x``."""
    thin = LayoutRect(x=x, y=y, width=BARLINE_THIN_WIDTH, height=STAFF_HEIGHT)
    second_x = x + BARLINE_THIN_WIDTH + BARLINE_GAP
    if barline_type == "single":
        return (thin,)
    if barline_type == "double":
        return (thin, LayoutRect(x=second_x, y=y, width=BARLINE_THIN_WIDTH, height=STAFF_HEIGHT))
    if barline_type == "end":
        return (thin, LayoutRect(x=second_x, y=y, width=BARLINE_THICK_WIDTH, height=STAFF_HEIGHT))
    return ()


def barline_at(x: float, barline_type: str, stave_y: float = 0.0) -> LayoutBarline:
    y = get_y_for_line(0, stave_y)
    return LayoutBarline(
        x=x,
        y=y,
        height=STAFF_HEIGHT,
        type=barline_type,
        strokes=barline_strokes(x, y, barline_type),
    )
