"""
Data models for BoardSync.

This module defines the core data structures shared by layout detection,
state extraction, session tracking, the sync pipeline and the overlay,
following immutable/frozen dataclass patterns wherever the value is a
snapshot rather than a live record.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Mapping

from boardsync.core.fen import grid_to_placement, square_name, parse_square


class LayoutKind(Enum):
    """Known page layout families."""
    WC_BOARD = auto()      # Custom board element, symbolic square classes
    LIVE_BOARD = auto()    # Layered board, pixel translate() offsets
    UNKNOWN = auto()       # No adapter matched


class PerspectiveSource(Enum):
    """Which resolution tier produced a perspective estimate."""
    EXPLICIT = auto()      # Board root orientation attribute/class
    CONTAINER = auto()     # Enclosing container class
    GEOMETRY = auto()      # Rank label positions
    DEFAULT = auto()       # Nothing conclusive, assume White at bottom


class ConnectionStatus(Enum):
    """Backend channel connection states."""
    DISCONNECTED = auto()
    CONNECTING = auto()
    CONNECTED = auto()


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned bounding box in viewport coordinates."""
    x0: float  # Left edge
    y0: float  # Top edge
    x1: float  # Right edge
    y1: float  # Bottom edge

    @classmethod
    def from_rect(cls, left: float, top: float, width: float, height: float) -> "BoundingBox":
        return cls(left, top, left + width, top + height)

    @property
    def width(self) -> float:
        return self.x1 - self.x0

    @property
    def height(self) -> float:
        return self.y1 - self.y0

    @property
    def center_y(self) -> float:
        return (self.y0 + self.y1) / 2


@dataclass(frozen=True)
class LayoutPatterns:
    """
    Structural patterns that differ between layout variants.

    Only the fields relevant to a layout are filled in; the rest stay None.
    """
    board_selector: str
    move_list_selector: str
    piece_selector: str
    square_encoding: str                 # "class" or "translate"
    coord_label_selector: str | None = None
    move_node_selector: str | None = None
    move_text_selector: str | None = None
    move_row_selector: str | None = None
    selected_move_selector: str | None = None
    white_move_class: str | None = None
    black_move_class: str | None = None
    explicit_orientation: bool = True
    board_size: int = 8


@dataclass(frozen=True)
class LayoutDescriptor:
    """
    The located structure of one board on the page.

    Node fields reference elements of the snapshot the descriptor was built
    from and are excluded from equality. The layout_key identifies the
    descriptor's lifetime: two descriptors with the same key describe the same
    board appearance, so per-layout caches stay valid between them.
    """
    kind: LayoutKind
    layout_key: str
    board_root: Any = field(default=None, compare=False, repr=False)
    move_list_root: Any = field(default=None, compare=False, repr=False)
    player_top: Any = field(default=None, compare=False, repr=False)
    player_bottom: Any = field(default=None, compare=False, repr=False)
    container: Any = field(default=None, compare=False, repr=False)
    patterns: LayoutPatterns | None = None
    snapshot: Any = field(default=None, compare=False, repr=False)
    url: str = ""

    @classmethod
    def unknown(cls, url: str = "") -> "LayoutDescriptor":
        """Sentinel returned when no layout matches."""
        return cls(kind=LayoutKind.UNKNOWN, layout_key="unknown", url=url)

    @property
    def is_known(self) -> bool:
        return self.kind != LayoutKind.UNKNOWN


@dataclass(frozen=True)
class PerspectiveEstimate:
    """Which side is rendered at the bottom of the board, and how we know."""
    black_at_bottom: bool
    source: PerspectiveSource


@dataclass(frozen=True)
class Piece:
    """A chess piece: color "w"/"b" and lowercase kind "pnbrqk"."""
    color: str
    kind: str

    @property
    def code(self) -> str:
        """Two-letter code used on the wire, e.g. "wK"."""
        return f"{self.color}{self.kind.upper()}"

    @property
    def symbol(self) -> str:
        """FEN symbol: uppercase for white."""
        return self.kind.upper() if self.color == "w" else self.kind.lower()

    @classmethod
    def from_code(cls, code: str) -> "Piece":
        return cls(color=code[0].lower(), kind=code[1].lower())

    @classmethod
    def from_symbol(cls, symbol: str) -> "Piece":
        return cls(color="w" if symbol.isupper() else "b", kind=symbol.lower())


Grid = tuple[tuple[Piece | None, ...], ...]


@dataclass(frozen=True)
class BoardState:
    """
    A canonical snapshot of the position.

    The grid is indexed grid[row][col] with row 0 the highest rank and col 0
    the lowest file, independent of how the page renders the board.
    """
    grid: Grid
    active_color: str = "w"
    full_move_number: int = 1
    castling: str = "-"
    en_passant: str = "-"
    halfmove_clock: int = 0

    @property
    def size(self) -> int:
        return len(self.grid)

    @property
    def occupied_count(self) -> int:
        return sum(1 for row in self.grid for piece in row if piece is not None)

    def piece_at(self, square: str) -> Piece | None:
        file_idx, rank_idx = parse_square(square)
        return self.grid[self.size - 1 - rank_idx][file_idx]

    def pieces(self) -> dict[str, str]:
        """Occupied squares mapped to piece codes, e.g. {"e1": "wK"}."""
        result: dict[str, str] = {}
        for row_idx, row in enumerate(self.grid):
            rank_idx = self.size - 1 - row_idx
            for file_idx, piece in enumerate(row):
                if piece is not None:
                    result[square_name(file_idx, rank_idx)] = piece.code
        return result

    def placement(self) -> str:
        """FEN piece-placement field."""
        symbols = [[p.symbol if p else None for p in row] for row in self.grid]
        return grid_to_placement(symbols)

    def fen(self) -> str:
        return (
            f"{self.placement()} {self.active_color} {self.castling} "
            f"{self.en_passant} {self.halfmove_clock} {self.full_move_number}"
        )

    @classmethod
    def from_pieces(
        cls,
        pieces: Mapping[str, str],
        size: int = 8,
        **kwargs: Any,
    ) -> "BoardState":
        """Build a state from a square -> piece code mapping."""
        rows: list[list[Piece | None]] = [[None] * size for _ in range(size)]
        for square, code in pieces.items():
            file_idx, rank_idx = parse_square(square)
            rows[size - 1 - rank_idx][file_idx] = Piece.from_code(code)
        return cls(grid=tuple(tuple(row) for row in rows), **kwargs)

    @classmethod
    def from_placement(cls, placement: str, **kwargs: Any) -> "BoardState":
        """Build a state from a FEN piece-placement field."""
        rows: list[tuple[Piece | None, ...]] = []
        for rank_str in placement.split()[0].split("/"):
            row: list[Piece | None] = []
            for char in rank_str:
                if char.isdigit():
                    row.extend([None] * int(char))
                else:
                    row.append(Piece.from_symbol(char))
            rows.append(tuple(row))
        return cls(grid=tuple(rows), **kwargs)


@dataclass
class GameSession:
    """
    The currently tracked game.

    Mutable: the tracker extends the move list and timestamp in place while
    the game continues, and replaces the whole session when a new one starts.
    """
    session_id: str
    start_state: BoardState
    moves: list[str] = field(default_factory=list)
    variant: str = "standard"
    page_game_id: str | None = None
    created_at: float = 0.0
    last_updated: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "start_position": self.start_state.pieces(),
            "start_active_color": self.start_state.active_color,
            "board_size": self.start_state.size,
            "moves": list(self.moves),
            "variant": self.variant,
            "page_game_id": self.page_game_id,
            "created_at": self.created_at,
            "last_updated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GameSession":
        start_state = BoardState.from_pieces(
            data.get("start_position", {}),
            size=int(data.get("board_size", 8)),
            active_color=data.get("start_active_color", "w"),
        )
        return cls(
            session_id=str(data["session_id"]),
            start_state=start_state,
            moves=list(data.get("moves", [])),
            variant=data.get("variant", "standard"),
            page_game_id=data.get("page_game_id"),
            created_at=float(data.get("created_at", 0.0)),
            last_updated=float(data.get("last_updated", 0.0)),
        )


@dataclass(frozen=True)
class AnalysisShape:
    """One engine suggestion to draw as an arrow."""
    origin: str
    destination: str
    color: str
    rank: int = 1                   # 1 = best line
    score: float | None = None      # Centipawns from the mover's view
    mate: int | None = None         # Mate distance in moves
    engine_id: str | None = None


@dataclass(frozen=True)
class ArrowGraphic:
    """A drawable arrow in board-local pixel coordinates."""
    shape: AnalysisShape
    start: tuple[float, float]
    end: tuple[float, float]
    path: str                       # SVG path data
    color: str
    opacity: float
    stacking_index: int             # 0 is drawn first (bottom)

    @property
    def length(self) -> float:
        return ((self.end[0] - self.start[0]) ** 2 + (self.end[1] - self.start[1]) ** 2) ** 0.5


@dataclass(frozen=True)
class LabelGraphic:
    """A rank/score label attached to an arrow."""
    text: str
    position: tuple[float, float]
    color: str
    stacking_index: int


@dataclass(frozen=True)
class OverlayScene:
    """Everything the overlay draws for one analysis batch."""
    arrows: tuple[ArrowGraphic, ...] = ()
    labels: tuple[LabelGraphic, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.arrows and not self.labels


@dataclass(frozen=True)
class TransmitResult:
    """Outcome of sending one message to the backend."""
    sent: bool
    via: str | None = None          # "channel" or "http"
    error: str | None = None
