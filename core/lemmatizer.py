# core/lemmatizer.py
import logging
from typing import Dict, Mapping, Optional, Protocol

from core.tokenizer import tokenize

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "en_core_web_sm"


class LemmatizerUnavailable(RuntimeError):
    """spaCy, the model, or its lemmatizer pipe could not be loaded."""


class Lemmatizer(Protocol):
    def lemmatize(self, word: str) -> str:
        ...


class MappingLemmatizer:
    """Fixed word -> lemma table; unknown words are returned unchanged."""

    def __init__(self, mapping: Optional[Mapping[str, str]] = None):
        self._mapping: Dict[str, str] = {k.lower(): v.lower() for k, v in (mapping or {}).items()}

    def lemmatize(self, word: str) -> str:
        w = (word or "").lower()
        return self._mapping.get(w, w)


class SpacyLemmatizer:
    """
    Word-level lemmatizer backed by a spaCy pipeline.
    The pipeline is loaded on first use (parser and NER disabled) and every
    word's lemma is cached, so each distinct word is analysed once per run.
    """

    def __init__(self, model: str = DEFAULT_MODEL):
        self.model = model
        self._nlp = None
        self._cache: Dict[str, str] = {}

    def _get_nlp(self):
        if self._nlp is not None:
            return self._nlp
        try:
            import spacy
        except ImportError as e:
            raise LemmatizerUnavailable(f"spaCy is not installed: {e}") from e
        try:
            nlp = spacy.load(self.model, disable=["parser", "ner"])
        except OSError as e:
            raise LemmatizerUnavailable(f"spaCy model '{self.model}' could not be loaded: {e}") from e
        if not nlp.has_pipe("lemmatizer"):
            raise LemmatizerUnavailable(f"spaCy model '{self.model}' has no lemmatizer pipe")
        self._nlp = nlp
        return nlp

    def ensure_loaded(self) -> "SpacyLemmatizer":
        """Loads the pipeline now; raises LemmatizerUnavailable if it cannot be loaded."""
        self._get_nlp()
        return self

    def lemmatize(self, word: str) -> str:
        w = (word or "").lower()
        if not w:
            return w
        if w in self._cache:
            return self._cache[w]
        doc = self._get_nlp()(w)
        lemma = doc[0].lemma_.lower() if len(doc) == 1 and doc[0].lemma_ else w
        self._cache[w] = lemma
        return lemma


def load_default_lemmatizer(model: str = DEFAULT_MODEL) -> Optional[Lemmatizer]:
    """
    Returns a ready spaCy lemmatizer, or None when spaCy or the model is
    missing. Callers treat None as "match raw names only".
    """
    try:
        return SpacyLemmatizer(model).ensure_loaded()
    except LemmatizerUnavailable as e:
        logger.warning("Lemmatizer unavailable, element matching falls back to raw names: %s", e)
        return None


def lemmatize_name(name: Optional[str], lemmatizer: Lemmatizer) -> str:
    """Lemmatizes `name` word by word and rejoins the lemmas with single spaces."""
    return " ".join(lemmatizer.lemmatize(w) for w in tokenize(name))
