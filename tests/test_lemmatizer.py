import sys

import pytest

from core import lemmatizer as lem
from core.lemmatizer import LemmatizerUnavailable, MappingLemmatizer, lemmatize_name, load_default_lemmatizer


def test_mapping_lemmatizer_is_identity_for_unknown_words():
    m = MappingLemmatizer({"Chillers": "chiller"})
    assert m.lemmatize("chillers") == "chiller"
    assert m.lemmatize("CHILLERS") == "chiller"
    assert m.lemmatize("pumps") == "pumps"


def test_lemmatize_name_rejoins_with_single_spaces(lemmatizer):
    assert lemmatize_name("Replace  Chillers, boilers", lemmatizer) == "replace chiller boiler"
    assert lemmatize_name("", lemmatizer) == ""


def test_default_lemmatizer_falls_back_to_none(monkeypatch):
    def broken(self):
        raise LemmatizerUnavailable("no model")

    monkeypatch.setattr(lem.SpacyLemmatizer, "ensure_loaded", broken)
    assert load_default_lemmatizer() is None


def test_ensure_loaded_without_spacy(monkeypatch):
    monkeypatch.setitem(sys.modules, "spacy", None)
    with pytest.raises(LemmatizerUnavailable):
        lem.SpacyLemmatizer().ensure_loaded()
    assert load_default_lemmatizer() is None


def test_spacy_lemmatizer_reduces_plurals():
    pytest.importorskip("spacy")
    lemmatizer = load_default_lemmatizer()
    if lemmatizer is None:
        pytest.skip("spaCy English model not installed")
    assert lemmatizer.lemmatize("chillers") == "chiller"
    assert lemmatizer.lemmatize("") == ""
