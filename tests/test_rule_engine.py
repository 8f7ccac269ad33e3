import json

import pytest

from conftest import make_record
from core.lemmatizer import LemmatizerUnavailable
from core.matching import TermList
from core.models import COLLABORATOR_FAILURE, ERROR_FLAGS, INPUT_MALFORMED, TermSet
from core.rule_engine import RuleEngine

EXPECTED = {
    "1": {"Error_1": 0, "Error_3": 0, "Error_4": 0, "Error_5": 0, "Error_6": 0, "Error_7": 0, "Error_8": 0},
    "2": {"Error_1": 0, "Error_3": 0, "Error_4": 0, "Error_5": 1, "Error_6": 1, "Error_7": 0, "Error_8": 0},
    "3": {"Error_1": 0, "Error_3": 1, "Error_4": 0, "Error_5": 0, "Error_6": 0, "Error_7": 0, "Error_8": 0},
    "4": {"Error_1": 1, "Error_3": 0, "Error_4": 0, "Error_5": 1, "Error_6": 0, "Error_7": 0, "Error_8": 0},
    "5": {"Error_1": 0, "Error_3": 0, "Error_4": 0, "Error_5": 1, "Error_6": 0, "Error_7": 1, "Error_8": 1},
    "6": {"Error_1": 0, "Error_3": 0, "Error_4": 0, "Error_5": 0, "Error_6": 0, "Error_7": 0, "Error_8": 1},
    "7": {"Error_1": 0, "Error_3": 0, "Error_4": 0, "Error_5": 0, "Error_6": 0, "Error_7": 0, "Error_8": 0},
}


@pytest.fixture
def engine(tmp_path):
    return RuleEngine(str(tmp_path / "no-rules.json"))


def _flags(result):
    return {fr.record.id: fr.flags for fr in result.records}


def test_every_record_gets_seven_binary_flags(engine, records, terms, lemmatizer):
    result = engine.evaluate(records, terms, lemmatizer)
    assert len(result.records) == len(records)
    for fr in result.records:
        assert tuple(fr.flags) == ERROR_FLAGS
        assert set(fr.flags.values()) <= {0, 1}


def test_flags_with_lemmatizer(engine, records, terms, lemmatizer):
    result = engine.evaluate(records, terms, lemmatizer)
    assert _flags(result) == EXPECTED
    assert result.attested_synonyms.terms == ("ahu", "air handling unit")
    assert result.lemma_fallback_count == 0
    assert not [i for i in result.issues if i.kind == COLLABORATOR_FAILURE]


def test_missing_lemmatizer_falls_back_and_is_reported(engine, records, terms):
    result = engine.evaluate(records, terms, None)
    flags = _flags(result)
    assert [flags[rid]["Error_6"] for rid in ("1", "4", "7")] == [1, 1, 1]
    assert result.lemma_fallback_count == len(records)
    issue = next(i for i in result.issues if i.kind == COLLABORATOR_FAILURE)
    assert issue.source == "lemmatizer"
    assert issue.count == len(records)


def test_lemmatizer_failing_mid_run(engine, records, terms):
    class Unavailable:
        def lemmatize(self, word):
            raise LemmatizerUnavailable("model went away")

    result = engine.evaluate(records, terms, Unavailable())
    assert result.lemma_fallback_count == len(records)
    issue = next(i for i in result.issues if i.kind == COLLABORATOR_FAILURE)
    assert issue.count == len(records)
    assert _flags(result)["7"]["Error_6"] == 1


def test_any_lemmatizer_error_falls_back_to_raw_names(engine, records, terms):
    class Broken:
        def lemmatize(self, word):
            raise KeyError(word)

    result = engine.evaluate(records, terms, Broken())
    flags = _flags(result)
    assert flags["2"]["Error_6"] == 1
    assert flags["7"]["Error_6"] == 1
    assert flags["2"]["Error_5"] == 1
    assert result.lemma_fallback_count == len(records)
    issue = next(i for i in result.issues if i.kind == COLLABORATOR_FAILURE)
    assert issue.source == "lemmatizer"
    assert issue.count == len(records)
    assert not [i for i in result.issues if i.source == "Error_6"]


def test_failing_check_does_not_stop_the_run(engine, records, terms, lemmatizer, monkeypatch):
    from core import rules

    real = rules.check_vague_terminology

    def flaky(name, vague_terms):
        if name.startswith("Capture"):
            raise ValueError("bad name")
        return real(name, vague_terms)

    monkeypatch.setattr(rules, "check_vague_terminology", flaky)
    result = engine.evaluate(records, terms, lemmatizer)
    flags = _flags(result)
    assert flags["2"]["Error_7"] == 0
    assert flags["2"]["Error_5"] == 1
    assert flags["5"]["Error_7"] == 1
    issue = next(i for i in result.issues if i.source == "Error_7")
    assert issue.kind == INPUT_MALFORMED
    assert issue.count == 1


def test_empty_term_list_only_affects_its_own_rule(engine, records, terms, lemmatizer):
    degraded = TermSet(
        tentative=TermList(),
        action=terms.action,
        element=terms.element,
        vague=terms.vague,
        synonym_groups=terms.synonym_groups,
    )
    result = engine.evaluate(records, degraded, lemmatizer)
    flags = _flags(result)
    for rid, expected in EXPECTED.items():
        assert flags[rid]["Error_1"] == 0
        assert {k: v for k, v in flags[rid].items() if k != "Error_1"} == \
            {k: v for k, v in expected.items() if k != "Error_1"}
    assert any(i.source == "tentative" and i.kind == INPUT_MALFORMED for i in result.issues)


def test_blank_name_degrades_to_boundary_values(engine, terms, lemmatizer):
    result = engine.evaluate([make_record("", rid="x")], terms, lemmatizer)
    flags = result.records[0].flags
    assert flags["Error_1"] == 0
    assert flags["Error_4"] == 0
    assert flags["Error_5"] == 1
    assert flags["Error_7"] == 0
    assert any(i.source == "measures" for i in result.issues)


def test_empty_record_list(engine, terms, lemmatizer):
    result = engine.evaluate([], terms, lemmatizer)
    assert result.records == []
    assert len(result.attested_synonyms) == 0


def test_flag_totals(engine, records, terms, lemmatizer):
    totals = engine.evaluate(records, terms, lemmatizer).flag_totals()
    assert totals == {"Error_1": 1, "Error_3": 1, "Error_4": 0, "Error_5": 3,
                      "Error_6": 1, "Error_7": 1, "Error_8": 2}


def test_missing_rule_file_uses_defaults(engine):
    assert engine.rules == {}
    assert engine.get_length_threshold() == 10
    assert engine.get_conjunctions() == ["and", "or", "and/or"]
    assert engine.get_separators() == [";"]
    assert engine.get_min_actions() == 2
    assert engine.get_source("measures") == "sample-eems.csv"
    assert engine.get_column("name") == "eem_name"
    assert engine.debug_summary()["loaded"] is False


def test_unparsable_rule_file_uses_defaults(tmp_path):
    path = tmp_path / "rules.json"
    path.write_text("{not json", encoding="utf-8")
    assert RuleEngine(str(path)).get_length_threshold() == 10


def test_length_threshold_from_rule_file(tmp_path, records, terms, lemmatizer):
    path = tmp_path / "rules.json"
    path.write_text(json.dumps({"name": "strict", "rules": {"excessive_length": {"threshold": 3}}}), encoding="utf-8")
    engine = RuleEngine(str(path))
    assert engine.get_length_threshold() == 3
    flags = _flags(engine.evaluate(records, terms, lemmatizer))
    assert flags["1"]["Error_4"] == 1
    assert flags["2"]["Error_4"] == 0

    engine.set_length_threshold(20)
    assert engine.get_length_threshold() == 20


def test_bundled_rule_file_loads():
    engine = RuleEngine()
    assert engine.debug_summary()["loaded"] is True
    assert engine.get_element_type() == "Element"
    assert engine.get_source("synonyms") == "synonymous-terms.csv"


def test_evaluate_name(engine, terms, lemmatizer, records):
    flags = engine.evaluate_name("Optimize AHU operation", terms, lemmatizer)
    assert tuple(flags) == ERROR_FLAGS
    assert flags["Error_7"] == 1
    # a single name cannot attest two synonyms on its own
    assert flags["Error_8"] == 0

    attested = engine.evaluate(records, terms, lemmatizer).attested_synonyms
    assert engine.evaluate_name("Optimize AHU operation", terms, lemmatizer, attested=attested)["Error_8"] == 1


def test_evaluate_name_survives_a_failing_lemmatizer(engine, terms):
    class Broken:
        def lemmatize(self, word):
            raise KeyError(word)

    class Unavailable:
        def lemmatize(self, word):
            raise LemmatizerUnavailable("no model")

    for lemmatizer in (Broken(), Unavailable()):
        flags = engine.evaluate_name("Capture condensate", terms, lemmatizer)
        assert flags["Error_6"] == 1
        assert flags["Error_5"] == 1
        assert engine.evaluate_name("Replace chillers", terms, lemmatizer)["Error_6"] == 1
