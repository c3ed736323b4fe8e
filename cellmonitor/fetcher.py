"""
Design (fetcher.py)
- Purpose: Read the current set of cells from the database.
- Inputs: A Database handle borrowed from the ConnectionManager.
- Outputs: list[Cell], never containing STATUS_INACTIVE rows.
- Side effects: One read-only query per call.
- Thread-safety: Runs on a background thread; touches nothing but the borrowed handle.
"""

import logging
from typing import List

from .config import NUMBER_COLUMN, STATUS_COLUMN, STATUS_INACTIVE, TABLE_NAME
from .database import Database
from .errors import QueryError
from .models import Cell

logger = logging.getLogger(__name__)

CELLS_QUERY = (
    f"SELECT {NUMBER_COLUMN} AS number, {STATUS_COLUMN} AS status "
    f"FROM {TABLE_NAME} WHERE {STATUS_COLUMN} != {STATUS_INACTIVE}"
)


def fetch_cells(db: Database) -> List[Cell]:
    """
    Purpose: Run the cell query and convert rows to Cells.
    Raises: QueryError on any driver failure or malformed row.
    """
    try:
        rows = db.execute(CELLS_QUERY)
    except QueryError:
        raise
    except Exception as exc:
        raise QueryError(str(exc)) from exc

    cells: List[Cell] = []
    for row in rows:
        try:
            cell = Cell(number=int(row[0]), status=int(row[1]))
        except (TypeError, ValueError, IndexError) as exc:
            raise QueryError(f"Unexpected row {row!r}: {exc}") from exc
        # The WHERE clause already excludes these; a non-SQL source might not
        if cell.status == STATUS_INACTIVE:
            continue
        cells.append(cell)
    logger.debug("Loaded %d cells from %s", len(cells), TABLE_NAME)
    return cells
