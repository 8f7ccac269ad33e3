# core/tokenizer.py
import re
from typing import Iterable, Iterator, List, Optional, Tuple

from core.models import MeasureRecord, Token
from core.stopwords import STOPWORDS

# Letters and digits only: hyphens, slashes, apostrophes and punctuation split words.
_WORD_RE = re.compile(r"[^\W_]+", re.UNICODE)
_CHUNK_RE = re.compile(r"\S+")


def word_spans(name: Optional[str]) -> List[Tuple[str, int, int]]:
    """
    Returns (word, start, end) for every word in `name`, left to right.
    Words are lower-cased; offsets point into the original string.
    """
    if not name:
        return []
    return [(m.group(0).lower(), m.start(), m.end()) for m in _WORD_RE.finditer(name)]


def tokenize(name: Optional[str]) -> List[str]:
    """Lower-cased word tokens of `name`. Empty or missing names give []."""
    return [w for w, _, _ in word_spans(name)]


def is_stopword(token: str) -> bool:
    return (token or "").lower() in STOPWORDS


def filter_stopwords(tokens: Iterable[str], stopwords: Iterable[str] = STOPWORDS) -> List[str]:
    """Drops stopwords, keeping the order of what remains."""
    stop = stopwords if isinstance(stopwords, (set, frozenset)) else set(stopwords)
    return [t for t in tokens if t not in stop]


def bigramize(name: Optional[str], stopwords: Iterable[str] = STOPWORDS) -> List[str]:
    """
    Consecutive word pairs of `name` after stopword removal, joined by a space.
    "Replace the water heater" -> ["replace water", "water heater"]
    """
    words = filter_stopwords(tokenize(name), stopwords)
    return [f"{a} {b}" for a, b in zip(words, words[1:])]


def whitespace_length(name: Optional[str]) -> int:
    """Number of whitespace-delimited chunks in `name`."""
    if not name:
        return 0
    return len(_CHUNK_RE.findall(name))


def tokenize_records(records: Iterable[MeasureRecord]) -> Iterator[Token]:
    """Yields every word of every record, tagged with its record id and category."""
    for rec in records:
        for pos, word in enumerate(tokenize(rec.name)):
            yield Token(record_id=rec.id, category=rec.cat_lev1, text=word, position=pos)
