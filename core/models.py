# core/models.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

if TYPE_CHECKING:
    from core.matching import TermList

# Output column names, in report order. Error 2 is a manual check.
ERROR_FLAGS: Tuple[str, ...] = (
    "Error_1",
    "Error_3",
    "Error_4",
    "Error_5",
    "Error_6",
    "Error_7",
    "Error_8",
)

# Issue kinds
INPUT_MALFORMED = "InputMalformed"
COLLABORATOR_FAILURE = "CollaboratorFailure"


@dataclass(frozen=True)
class MeasureRecord:
    id: str
    document: str
    cat_lev1: str
    cat_lev2: Optional[str]
    name: str


@dataclass(frozen=True)
class SynonymGroup:
    category: str
    terms: Tuple[str, ...]


@dataclass(frozen=True)
class Token:
    record_id: str
    category: str
    text: str
    position: int


@dataclass
class FlaggedRecord:
    record: MeasureRecord
    flags: Dict[str, int]
    lemma_fallback: bool = False

    @property
    def flagged(self) -> bool:
        return any(self.flags.values())

    def as_row(self) -> Dict[str, object]:
        row: Dict[str, object] = {
            "eem_id": self.record.id,
            "document": self.record.document,
            "cat_lev1": self.record.cat_lev1,
            "cat_lev2": self.record.cat_lev2,
            "eem_name": self.record.name,
        }
        row.update({k: self.flags.get(k, 0) for k in ERROR_FLAGS})
        return row


@dataclass(frozen=True)
class CategorySummary:
    category: str
    total: int
    error_counts: Dict[str, int]


@dataclass(frozen=True)
class LengthSummary:
    minimum: int
    mean: float
    median: float
    maximum: int
    counts: Tuple[int, ...] = ()


@dataclass
class Issue:
    """A degradation noticed while loading or evaluating. Reported, never raised."""
    kind: str
    source: str
    message: str
    count: int = 1


@dataclass
class TermSet:
    """The five reference vocabularies the rules consume."""
    tentative: TermList
    action: TermList
    element: TermList
    vague: TermList
    synonym_groups: List[SynonymGroup] = field(default_factory=list)

