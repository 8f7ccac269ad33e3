import matplotlib

matplotlib.use("Agg")

import pytest

from core.lemmatizer import MappingLemmatizer
from core.matching import TermList
from core.models import MeasureRecord, SynonymGroup, TermSet


def make_record(name, cat="HVAC", rid=None, cat2=None):
    return MeasureRecord(id=rid or name, document="Test Guide", cat_lev1=cat, cat_lev2=cat2, name=name)


@pytest.fixture
def terms():
    return TermSet(
        tentative=TermList(["consider", "evaluate", "investigate"]),
        action=TermList(["install", "inspect", "fire", "replace", "clean", "seal", "turn off"]),
        element=TermList(["boiler", "chiller", "meter", "air handling unit", "ahu", "window", "door"]),
        vague=TermList(["optimize", "improve", "upgrade"]),
        synonym_groups=[
            SynonymGroup(category="AHU", terms=("ahu", "air handling unit", "air handler")),
            SynonymGroup(category="HVAC", terms=("hvac", "heating ventilation air conditioning")),
        ],
    )


@pytest.fixture
def lemmatizer():
    return MappingLemmatizer({
        "chillers": "chiller",
        "boilers": "boiler",
        "meters": "meter",
        "windows": "window",
        "installing": "install",
    })


@pytest.fixture
def records():
    return [
        make_record("Install flow rate meters", cat="Water", rid="1"),
        make_record("Capture condensate", cat="Water", rid="2"),
        make_record("Inspect and fire side of boiler", cat="Boiler Plant", rid="3"),
        make_record("Consider installing outdoor air reset controls on boilers", cat="Boiler Plant", rid="4"),
        make_record("Optimize AHU operation", cat="HVAC", rid="5"),
        make_record("Clean air handling unit coils", cat="HVAC", rid="6"),
        make_record("Replace chillers", cat="HVAC", rid="7"),
    ]
