"""
Chess variant detection.

Checks the page for variant evidence, strongest first:

1. Well-known play URLs that only host standard games
2. ``/variants/<name>`` URLs
3. Variant-specific UI classes
4. Variant names in the game area's text
5. A Chess960 back rank at the start of a game

Without any evidence the caller's default (standard chess) is kept.
"""

import logging
import re
from collections.abc import Sequence

from boardsync.core.fen import STARTING_PLACEMENT
from boardsync.core.models import BoardState, LayoutDescriptor
from boardsync.page.snapshot import PageSnapshot


logger = logging.getLogger(__name__)

STANDARD = "standard"

SUPPORTED_VARIANTS = (
    "standard",
    "chess960",
    "crazyhouse",
    "kingOfTheHill",
    "threeCheck",
    "antichess",
    "atomic",
    "horde",
    "racingKings",
)

STANDARD_PATHS = ("/play/computer", "/play/online")

URL_SLUGS: dict[str, str] = {
    "chess960": "chess960",
    "960": "chess960",
    "fischer-random": "chess960",
    "crazyhouse": "crazyhouse",
    "king-of-the-hill": "kingOfTheHill",
    "kingofthehill": "kingOfTheHill",
    "koth": "kingOfTheHill",
    "3-check": "threeCheck",
    "three-check": "threeCheck",
    "threecheck": "threeCheck",
    "antichess": "antichess",
    "giveaway": "antichess",
    "atomic": "atomic",
    "horde": "horde",
    "racing-kings": "racingKings",
    "racingkings": "racingKings",
}

UI_CLASSES: dict[str, str] = {
    ".variant-chess960": "chess960",
    ".variant-crazyhouse": "crazyhouse",
    ".variant-kingofthehill, .variant-king-of-the-hill": "kingOfTheHill",
    ".variant-threecheck, .variant-3check": "threeCheck",
    ".variant-antichess, .variant-giveaway": "antichess",
    ".variant-atomic": "atomic",
    ".variant-horde": "horde",
    ".variant-racingkings, .variant-racing-kings": "racingKings",
}

TEXT_PATTERNS: list[tuple[re.Pattern, str]] = [
    (re.compile(r"\b(chess\s?960|fischer\s?random)\b", re.I), "chess960"),
    (re.compile(r"\bcrazyhouse\b", re.I), "crazyhouse"),
    (re.compile(r"\bking\s+of\s+the\s+hill\b", re.I), "kingOfTheHill"),
    (re.compile(r"\b(3|three)[\s-]check\b", re.I), "threeCheck"),
    (re.compile(r"\b(antichess|giveaway)\b", re.I), "antichess"),
    (re.compile(r"\batomic\b", re.I), "atomic"),
    (re.compile(r"\bhorde\b", re.I), "horde"),
    (re.compile(r"\bracing\s+kings\b", re.I), "racingKings"),
]

VARIANT_URL_RE = re.compile(r"/variants/([\w-]+)", re.I)
CHESS960_MAX_MOVES = 4


def variant_from_url(url: str) -> str | None:
    if any(path in url for path in STANDARD_PATHS):
        return STANDARD
    match = VARIANT_URL_RE.search(url)
    if match:
        return URL_SLUGS.get(match.group(1).lower())
    return None


def is_chess960_setup(state: BoardState) -> bool:
    """A mirrored, non-standard back rank with the king between the rooks."""
    if state.size != 8 or state.placement() == STARTING_PLACEMENT:
        return False

    white_rank = [state.grid[7][f] for f in range(8)]
    black_rank = [state.grid[0][f] for f in range(8)]
    if any(p is None or p.color != "w" or p.kind == "p" for p in white_rank):
        return False
    if any(b is None or b.color != "b" or b.kind != w.kind for w, b in zip(white_rank, black_rank)):
        return False

    kinds = "".join(p.kind for p in white_rank)
    if kinds == "rnbqkbnr" or sorted(kinds) != sorted("rnbqkbnr"):
        return False

    rooks = [i for i, k in enumerate(kinds) if k == "r"]
    bishops = [i for i, k in enumerate(kinds) if k == "b"]
    king = kinds.index("k")
    return rooks[0] < king < rooks[1] and bishops[0] % 2 != bishops[1] % 2


def detect_variant(
    descriptor: LayoutDescriptor,
    state: BoardState | None = None,
    moves: Sequence[str] = (),
    default: str = STANDARD,
) -> str:
    """
    Best guess at the variant being played.

    The default is returned when the page gives no evidence at all, so a
    variant recognised earlier in the game can be kept.
    """
    variant = variant_from_url(descriptor.url)
    if variant is not None:
        return variant

    snapshot: PageSnapshot | None = descriptor.snapshot
    if snapshot is not None:
        for selector, name in UI_CLASSES.items():
            if snapshot.contains(selector):
                return name

        game_area = descriptor.container if descriptor.container is not None else descriptor.board_root
        if game_area is not None:
            text = snapshot.text(game_area)
            for pattern, name in TEXT_PATTERNS:
                if pattern.search(text):
                    return name

    if state is not None and len(moves) <= CHESS960_MAX_MOVES and is_chess960_setup(state):
        logger.debug("Chess960 back rank at game start")
        return "chess960"

    return default
