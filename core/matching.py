# core/matching.py
"""
Whole-word / whole-phrase matching of reference terms against measure names.

Both the name and every term go through the same tokenizer, and a term
matches when its word sequence appears as a contiguous run of the name's
words. That gives word-boundary semantics without building regular
expressions out of user-supplied terms: "install" never matches "reinstall",
"and/or" matches "and/or" and "and or", and characters such as "-" or "/"
inside a term need no escaping.
"""
from __future__ import annotations

from collections import defaultdict
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from core.tokenizer import tokenize, word_spans

Phrase = Tuple[str, ...]


class TermList:
    """
    Ordered, case-insensitive set of reference phrases.
    Terms are de-duplicated on their tokenized form; terms with no words
    (blank cells, bare punctuation) are dropped.
    """

    def __init__(self, terms: Iterable[str] = ()):
        self._terms: List[str] = []
        self._phrases: List[Phrase] = []
        seen = set()
        for term in terms or ():
            if not isinstance(term, str):
                continue
            phrase = tuple(tokenize(term))
            if not phrase or phrase in seen:
                continue
            seen.add(phrase)
            self._terms.append(term.strip())
            self._phrases.append(phrase)

        # first word -> phrases starting with it, longest first
        index: Dict[str, List[Phrase]] = defaultdict(list)
        for phrase in self._phrases:
            index[phrase[0]].append(phrase)
        for key in index:
            index[key].sort(key=len, reverse=True)
        self._by_first: Dict[str, List[Phrase]] = dict(index)

    @classmethod
    def of(cls, terms: Union["TermList", Iterable[str], None]) -> "TermList":
        if isinstance(terms, TermList):
            return terms
        return cls(terms or ())

    @property
    def terms(self) -> Tuple[str, ...]:
        return tuple(self._terms)

    @property
    def phrases(self) -> Tuple[Phrase, ...]:
        return tuple(self._phrases)

    def starting_with(self, word: str) -> Sequence[Phrase]:
        return self._by_first.get(word, ())

    def __iter__(self) -> Iterator[str]:
        return iter(self._terms)

    def __len__(self) -> int:
        return len(self._terms)

    def __bool__(self) -> bool:
        return bool(self._terms)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TermList):
            return NotImplemented
        return self._phrases == other._phrases

    def __repr__(self) -> str:
        return f"TermList({self._terms!r})"


def _match_at(words: Sequence[str], i: int, phrase: Phrase) -> bool:
    return tuple(words[i:i + len(phrase)]) == phrase


class WordIndex:
    """
    Tokenized text with the positions of each word, built once and queried
    for many phrases (used for the corpus-wide synonym scan).
    """

    def __init__(self, text: Optional[str]):
        self.words: List[str] = tokenize(text)
        positions: Dict[str, List[int]] = defaultdict(list)
        for i, w in enumerate(self.words):
            positions[w].append(i)
        self._positions = dict(positions)

    def has(self, phrase: Phrase) -> bool:
        return any(_match_at(self.words, i, phrase) for i in self._positions.get(phrase[0], ()))

    def find(self, terms: Union[TermList, Iterable[str], None]) -> List[str]:
        tl = TermList.of(terms)
        return [term for term, phrase in zip(tl.terms, tl.phrases) if self.has(phrase)]


def contains_any(name: Optional[str], terms: Union[TermList, Iterable[str], None]) -> bool:
    """True iff any term occurs in `name` as a whole word or whole phrase."""
    tl = TermList.of(terms)
    if not tl or not name:
        return False
    index = WordIndex(name)
    return any(index.has(phrase) for phrase in tl.phrases)


def find_matches(name: Optional[str], terms: Union[TermList, Iterable[str], None]) -> List[str]:
    """The terms present in `name`, in term-list order."""
    if not name:
        return []
    return WordIndex(name).find(terms)


def count_matches(
    name: Optional[str],
    terms: Union[TermList, Iterable[str], None],
    skip_hyphenated: bool = True,
) -> int:
    """
    Counts non-overlapping term occurrences in `name`, longest match first.

    At each word position the longest term starting there wins and the scan
    resumes after it. With `skip_hyphenated`, an occurrence whose last word is
    immediately followed by "-" in the raw name does not count (e.g. "fire" in
    "fire-tube"), and the next shorter term at that position is tried instead.
    """
    tl = TermList.of(terms)
    spans = word_spans(name)
    if not tl or not spans:
        return 0
    words = [w for w, _, _ in spans]
    text = name or ""

    count = 0
    i = 0
    while i < len(words):
        step = 1
        for phrase in tl.starting_with(words[i]):
            if not _match_at(words, i, phrase):
                continue
            end = spans[i + len(phrase) - 1][2]
            if skip_hyphenated and text[end:end + 1] == "-":
                continue
            count += 1
            step = len(phrase)
            break
        i += step
    return count


def starts_with_any(name: Optional[str], terms: Union[TermList, Iterable[str], None]) -> bool:
    """
    True iff `name` opens with one of the terms: the match has to begin at the
    first word, and that word has to be the first non-blank character.
    """
    tl = TermList.of(terms)
    spans = word_spans(name)
    if not tl or not spans:
        return False
    text = name or ""
    if spans[0][1] != len(text) - len(text.lstrip()):
        return False
    words = [w for w, _, _ in spans]
    return any(_match_at(words, 0, phrase) for phrase in tl.starting_with(words[0]))
