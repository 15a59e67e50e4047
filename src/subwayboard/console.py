"""Plain-text rendering of the arrival board."""

from typing import List

from .models import BoardView, LineView, TrackState
from .track import ARRIVING, CLOSE, MID_DISTANCE

TRACK_WIDTH = 60

_TRAIN_GLYPHS = {
    ARRIVING: "@",
    CLOSE: "#",
    MID_DISTANCE: "=",
}


def render_track(track: TrackState, line: str, width: int = TRACK_WIDTH) -> str:
    """Draw a track as a row of characters with the station on the left."""
    cells = ["-"] * width
    cells[0] = "|"
    for position in track.positions:
        index = min(width - 1, int(round(position.percent / 100.0 * (width - 1))))
        cells[index] = _TRAIN_GLYPHS.get(position.bucket, line)
    row = "".join(cells)
    if track.imminent:
        row += "  << arriving"
    return row


def render_line(view: LineView) -> List[str]:
    if view.message:
        return [f"  [{view.line}]  {view.message}"]

    entries = "   ".join(f"{row.text:>6} ({row.clock})" for row in view.arrivals)
    return [
        f"  [{view.line}]  {entries}",
        f"        {render_track(view.track, view.line)}",
    ]


def render_text(view: BoardView) -> str:
    """Render a BoardView as a multi-line string."""
    rule = "=" * 70
    lines = [
        rule,
        f"{view.station:<40}{view.clock:>30}",
        f"{view.direction:<40}{view.date:>30}",
        rule,
    ]
    for line_view in view.lines.values():
        lines.extend(render_line(line_view))
        lines.append("")
    lines.append("-" * 70)
    lines.append(view.footer)
    return "\n".join(lines)
