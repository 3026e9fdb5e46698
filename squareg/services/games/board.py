import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .errors import InvalidMoveError


COLUMN_DOWN = 'columnDown'
COLUMN_UP = 'columnUp'
ROW_RIGHT = 'rowRight'
ROW_LEFT = 'rowLeft'

MOVE_TYPES = (COLUMN_DOWN, COLUMN_UP, ROW_RIGHT, ROW_LEFT)

DEFAULT_SCRAMBLE_RANGE = (15, 35)


@dataclass(frozen=True)
class Tile:
    id: int
    color_index: int
    value: int

    def to_dict(self):
        return {
            'id': self.id,
            'colorIndex': self.color_index,
            'value': self.value,
        }


class Board:
    """A size x size grid of tiles.

    Rotations only move tile references between cells, so the set of tiles
    on a board is always exactly the generation it was built with.
    """

    def __init__(self, cells: List[List[Tile]]):
        self.size = len(cells)
        self.cells = cells

    def __getitem__(self, row: int) -> List[Tile]:
        return self.cells[row]

    def __eq__(self, other):
        if not isinstance(other, Board):
            return NotImplemented
        return self.cells == other.cells

    def __repr__(self):
        return f"Board(size={self.size})"

    def _in_range(self, index) -> bool:
        return isinstance(index, int) and not isinstance(index, bool) and 0 <= index < self.size

    def rotate_column_down(self, col: int) -> None:
        """Bottom tile of the column wraps to the top."""
        if not self._in_range(col):
            return
        bottom = self.cells[self.size - 1][col]
        for row in range(self.size - 1, 0, -1):
            self.cells[row][col] = self.cells[row - 1][col]
        self.cells[0][col] = bottom

    def rotate_column_up(self, col: int) -> None:
        """Top tile of the column wraps to the bottom."""
        if not self._in_range(col):
            return
        top = self.cells[0][col]
        for row in range(self.size - 1):
            self.cells[row][col] = self.cells[row + 1][col]
        self.cells[self.size - 1][col] = top

    def rotate_row_right(self, row: int) -> None:
        """Rightmost tile of the row wraps to the left edge."""
        if not self._in_range(row):
            return
        line = self.cells[row]
        line.insert(0, line.pop())

    def rotate_row_left(self, row: int) -> None:
        """Leftmost tile of the row wraps to the right edge."""
        if not self._in_range(row):
            return
        line = self.cells[row]
        line.append(line.pop(0))

    def apply(self, move_type: str, index: int) -> None:
        """Apply a rotation by its wire name."""
        rotation = _ROTATIONS.get(move_type)
        if rotation is None:
            raise InvalidMoveError(f"Unknown move type: {move_type!r}")
        rotation(self, index)

    def copy(self) -> 'Board':
        return Board([list(row) for row in self.cells])

    def color_rows(self) -> List[List[int]]:
        return [[tile.color_index for tile in row] for row in self.cells]

    def tiles(self) -> List[Tile]:
        return [tile for row in self.cells for tile in row]

    def to_list(self) -> List[List[Dict[str, int]]]:
        return [[tile.to_dict() for tile in row] for row in self.cells]


_ROTATIONS = {
    COLUMN_DOWN: Board.rotate_column_down,
    COLUMN_UP: Board.rotate_column_up,
    ROW_RIGHT: Board.rotate_row_right,
    ROW_LEFT: Board.rotate_row_left,
}


def matches_by_color(a: Board, b: Board) -> bool:
    """Win predicate: every cell holds a tile of the same colour group.

    Tile ids and labels are ignored.
    """
    if a.size != b.size:
        return False
    return a.color_rows() == b.color_rows()


def generate_ordered(size: int) -> Board:
    cells = []
    for row in range(size):
        cells.append([Tile(id=row * size + col, color_index=row, value=row * size + col) for col in range(size)])
    return Board(cells)


def generate_scrambled(
    size: int,
    move_count_range: Tuple[int, int] = DEFAULT_SCRAMBLE_RANGE,
    rng: Optional[random.Random] = None,
) -> Board:
    """Build a target pattern by applying random rotations to an ordered board.

    The number of moves is drawn uniformly from the inclusive range; each
    step picks one of the four move types and a line index in [0, size).
    """
    rng = rng or random
    low, high = move_count_range
    board = generate_ordered(size)
    for _ in range(rng.randint(low, high)):
        move_type = rng.choice(MOVE_TYPES)
        board.apply(move_type, rng.randrange(size))
    return board
