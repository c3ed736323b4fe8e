"""Free/occupied counters shown above the grid."""

from typing import Iterable

from .config import STATUS_FREE, STATUS_OCCUPIED
from .models import Cell, Stats


def aggregate(cells: Iterable[Cell]) -> Stats:
    """
    Count cells. Statuses other than free/occupied (unavailable, blocked, unknown)
    only count towards the total.
    """
    total = free = occupied = 0
    for cell in cells:
        total += 1
        if cell.status == STATUS_FREE:
            free += 1
        elif cell.status == STATUS_OCCUPIED:
            occupied += 1
    return Stats(total=total, free=free, occupied=occupied)
