from conftest import make_record
from core import aggregator
from core.models import ERROR_FLAGS, FlaggedRecord


def _flagged(name, cat, **flags):
    return FlaggedRecord(record=make_record(name, cat=cat), flags={k: flags.get(k, 0) for k in ERROR_FLAGS})


def test_summarize_groups_by_category():
    flagged = [
        _flagged("Upgrade controls", "HVAC", Error_5=1, Error_7=1),
        _flagged("Replace chillers", "HVAC"),
        _flagged("Capture condensate", "Water", Error_5=1, Error_6=1),
    ]
    summaries = aggregator.summarize(flagged)
    assert [s.category for s in summaries] == ["HVAC", "Water"]
    hvac, water = summaries
    assert hvac.total == 2
    assert hvac.error_counts["Error_5"] == 1
    assert hvac.error_counts["Error_7"] == 1
    assert water.error_counts == {**{k: 0 for k in ERROR_FLAGS}, "Error_5": 1, "Error_6": 1}
    assert sum(s.total for s in summaries) == len(flagged)


def test_summarize_is_repeatable():
    flagged = [_flagged("Seal windows", "Envelope", Error_3=1), _flagged("Add insulation", "Envelope")]
    assert aggregator.summarize(flagged) == aggregator.summarize(flagged)


def test_summarize_empty():
    assert aggregator.summarize([]) == []


def test_word_frequencies_ties_keep_first_seen_order():
    names = ["Install meters", "install pumps", "Replace meters"]
    assert aggregator.word_frequencies(names) == [
        ("install", 2), ("meters", 2), ("pumps", 1), ("replace", 1),
    ]


def test_word_frequencies_drop_stopwords():
    freqs = dict(aggregator.word_frequencies(["Seal the windows and doors"]))
    assert freqs == {"seal": 1, "windows": 1, "doors": 1}


def test_bigram_frequencies():
    names = ["Replace the water heater", "Insulate water heater tank"]
    assert aggregator.bigram_frequencies(names) == [
        ("water heater", 2), ("replace water", 1), ("insulate water", 1), ("heater tank", 1),
    ]


def test_first_word_frequencies_count_repeated_names_once_per_category():
    records = [
        make_record("Install meters", cat="Water"),
        make_record("Install meters", cat="Water"),
        make_record("Install meters", cat="HVAC"),
        make_record("Replace chillers", cat="HVAC"),
        make_record("", cat="HVAC"),
    ]
    assert aggregator.first_word_frequencies(records) == [("install", 2), ("replace", 1)]


def test_removed_stopwords():
    assert aggregator.removed_stopwords(["Seal the windows and doors", "Turn off the lights"]) == [
        "and", "off", "the",
    ]


def test_token_counts_and_length_summary():
    counts = aggregator.token_counts(["Upgrade controls", "Install flow rate meters", "", None])
    assert counts == [2, 4, 0, 0]

    summary = aggregator.length_summary([2, 4, 3])
    assert (summary.minimum, summary.maximum) == (2, 4)
    assert summary.mean == 3.0
    assert summary.median == 3.0


def test_length_summary_of_nothing():
    summary = aggregator.length_summary([])
    assert (summary.minimum, summary.mean, summary.median, summary.maximum) == (0, 0.0, 0.0, 0)


def test_sample_measures_pick_the_alphabetically_first_name():
    names = ["Install flow rate meters", "Upgrade controls", "Replace chillers", "Add roof insulation", ""]
    assert aggregator.sample_measures(names) == [
        (2, "Replace chillers"),
        (3, "Add roof insulation"),
        (4, "Install flow rate meters"),
    ]
    assert aggregator.sample_measures(list(reversed(names))) == aggregator.sample_measures(names)
