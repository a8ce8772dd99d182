"""Paytable: symbol patterns with wildcards mapped to coin payouts."""
from collections.abc import Iterable, Iterator, Mapping
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

WILDCARD = "*"

PatternCell = int | Literal["*"]
Pattern = tuple[PatternCell, PatternCell, PatternCell]


class PatternKind(str, Enum):
    """Pattern shapes, listed in resolution precedence order."""

    TRIPLE = "triple"
    PAIR = "pair"
    SINGLE = "single"


PRECEDENCE: tuple[PatternKind, ...] = (
    PatternKind.TRIPLE,
    PatternKind.PAIR,
    PatternKind.SINGLE,
)


def classify(combo: Pattern) -> PatternKind:
    """
    Return the shape of a pattern, or raise ValueError if unsupported.

    Supported shapes are (a, a, a), (a, a, *) and (a, *, *). Every other
    arrangement, including (a, b, *) with a != b, is rejected.
    """
    first, second, third = combo
    if first == WILDCARD:
        raise ValueError(f"Pattern {format_combo(combo)} must start with a symbol")
    if second == WILDCARD:
        if third != WILDCARD:
            raise ValueError(f"Pattern {format_combo(combo)} has a gap in the middle")
        return PatternKind.SINGLE
    if second != first:
        raise ValueError(f"Pattern {format_combo(combo)} must repeat its leading symbol")
    if third == WILDCARD:
        return PatternKind.PAIR
    if third != first:
        raise ValueError(f"Pattern {format_combo(combo)} is not a 3-of-a-kind")
    return PatternKind.TRIPLE


def format_combo(combo: Iterable[PatternCell]) -> str:
    """Render a pattern as "7,7,*"."""
    return ",".join(str(cell) for cell in combo)


def parse_combo(key: str) -> Pattern:
    """Parse "7,7,*" into (7, 7, "*")."""
    cells = [cell.strip() for cell in key.split(",")]
    if len(cells) != 3:
        raise ValueError(f"Pattern {key!r} must have exactly 3 cells")
    parsed: list[PatternCell] = [
        WILDCARD if cell == WILDCARD else int(cell) for cell in cells
    ]
    return (parsed[0], parsed[1], parsed[2])


class PaytableEntry(BaseModel):
    """One paytable row."""

    model_config = ConfigDict(frozen=True)

    combo: Pattern
    payout: int = Field(ge=0)

    @field_validator("combo")
    @classmethod
    def _check_combo(cls, combo: Pattern) -> Pattern:
        for cell in combo:
            if cell != WILDCARD and cell < 0:
                raise ValueError(f"Symbol {cell} must be non-negative")
        classify(combo)
        return combo

    @property
    def kind(self) -> PatternKind:
        return classify(self.combo)

    @property
    def label(self) -> str:
        return format_combo(self.combo)


class Paytable:
    """Immutable lookup of payouts by exact pattern."""

    def __init__(self, entries: Iterable[PaytableEntry]):
        self._entries: dict[Pattern, PaytableEntry] = {}
        for entry in entries:
            if entry.combo in self._entries:
                raise ValueError(f"Duplicate paytable pattern {entry.label}")
            self._entries[entry.combo] = entry

    @classmethod
    def from_mapping(cls, table: Mapping[str, int]) -> "Paytable":
        """Build from {"0,0,0": 1000, "7,7,*": 30, ...}."""
        return cls(
            PaytableEntry(combo=parse_combo(key), payout=payout)
            for key, payout in table.items()
        )

    def payout_for(self, combo: Pattern) -> int | None:
        """Payout of the entry with exactly this pattern, None if absent."""
        entry = self._entries.get(combo)
        return entry.payout if entry is not None else None

    def entries(self) -> list[PaytableEntry]:
        """Entries in precedence order, table order within a shape."""
        return sorted(
            self._entries.values(), key=lambda entry: PRECEDENCE.index(entry.kind)
        )

    def symbols(self) -> set[int]:
        """Every concrete symbol referenced by the table."""
        return {
            cell
            for combo in self._entries
            for cell in combo
            if cell != WILDCARD
        }

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[PaytableEntry]:
        return iter(self.entries())


# Server table for the 9-symbol reel strip (0 = seven ... 8 = cherry).
DEFAULT_PAYTABLE = Paytable.from_mapping({
    "0,0,0": 1000,
    "1,1,1": 700,
    "2,2,2": 500,
    "3,3,3": 400,
    "4,4,4": 300,
    "5,5,5": 150,
    "6,6,6": 100,
    "7,7,7": 80,
    "8,8,8": 60,
    "7,7,*": 30,
    "8,8,*": 15,
    "7,*,*": 7,
    "8,*,*": 2,
})
