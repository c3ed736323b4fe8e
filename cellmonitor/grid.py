"""
Design (grid.py)
- Purpose: Turn fetched cells into the ordered list of tiles the UI draws.
- Inputs: Cells from one poll.
- Outputs: list[Tile] sorted by cell number; each tile carries category (styling) and label (text).
- Side effects: None (the Tk widgets live in ui.GridView).
- Thread-safety: Stateless; safe to call from any thread.
"""

from typing import Iterable, List, NamedTuple, Tuple

from .config import STATUS_BLOCKED, STATUS_FREE, STATUS_OCCUPIED, STATUS_UNAVAILABLE
from .models import Cell

FREE = "free"
OCCUPIED = "occupied"
UNAVAILABLE = "unavailable"
UNKNOWN = "unknown"

_STATUS_MAP = {
    STATUS_FREE: (FREE, "FREE"),
    STATUS_OCCUPIED: (OCCUPIED, "OCCUPIED"),
    STATUS_UNAVAILABLE: (UNAVAILABLE, "UNAVAILABLE"),
    STATUS_BLOCKED: (UNAVAILABLE, "BLOCKED"),
}


class Tile(NamedTuple):
    number: int
    status: int
    category: str
    label: str


def classify(status: int) -> Tuple[str, str]:
    """Map a status code to (category, label)."""
    try:
        return _STATUS_MAP[status]
    except KeyError:
        return UNKNOWN, f"STATUS {status}"


def sort_cells(cells: Iterable[Cell]) -> List[Cell]:
    # sorted() is stable, so duplicate numbers keep their fetch order
    return sorted(cells, key=lambda c: c.number)


def render(cells: Iterable[Cell]) -> List[Tile]:
    """Build a fresh tile list for the whole grid (no diffing against the previous one)."""
    tiles = []
    for cell in sort_cells(cells):
        category, label = classify(cell.status)
        tiles.append(Tile(cell.number, cell.status, category, label))
    return tiles
