import streamlit as st
import sys
import os
import re
import html
import importlib
from typing import Dict, List, Optional

# Make local packages importable when run from /ui
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from core.lemmatizer import load_default_lemmatizer
from core.loaders import load_measures, load_term_set
from core.matching import find_matches
from core.rule_engine import PROJECT_ROOT, RuleEngine
from core.rules import RULES

DATA_DIR = os.path.join(PROJECT_ROOT, "data")

# Error kind -> (chip color, which term list to highlight)
_FLAG_STYLE = {
    "Error_1": ("#FDE68A", "tentative"),
    "Error_3": ("#FBCFE8", "action"),
    "Error_4": ("#E5E7EB", None),
    "Error_5": ("#FECACA", None),
    "Error_6": ("#BFDBFE", None),
    "Error_7": ("#FFFF00", "vague"),
    "Error_8": ("#FFA500", "attested"),
}


# ------------------------------ Styles ------------------------------
def _flag_css() -> str:
    """One chip class per error flag plus the flagged-measure card."""
    accent = st.get_option("theme.primaryColor") or "#0E7490"
    chips = "\n".join(
        f"  .eem-chip.{key.lower()} {{ background:{color}; }}" for key, (color, _) in _FLAG_STYLE.items()
    )
    return f"""
<style>
  .eem-card {{ background:#FFF3CD; color:#856404; padding:10px; border-radius:5px; margin-bottom:10px; }}
  .eem-card .eem-id {{ color:{accent}; font-weight:700; }}
  .eem-hl {{ color:black; padding:2px 4px; border-radius:3px; }}
  .eem-chip {{ color:black; padding:2px 8px; border-radius:999px; margin-right:6px; font-size:12px; }}
{chips}
</style>
"""


# ========================= Helpers for Analyzer =========================
@st.cache_resource(show_spinner=False)
def get_lemmatizer():
    return load_default_lemmatizer()

def load_terms(engine: RuleEngine, term_files: Optional[Dict] = None):
    """The five term lists (uploads override the bundled files) and their loading issues."""
    return load_term_set(DATA_DIR, engine, overrides=term_files or {})

def load_inputs(engine: RuleEngine, measures_file=None, term_files: Optional[Dict] = None):
    """Measures (upload or bundled sample) and the five term lists, plus every loading issue."""
    terms, term_issues = load_terms(engine, term_files)
    source = measures_file if measures_file is not None else os.path.join(DATA_DIR, engine.get_source("measures"))
    records, measure_issues = load_measures(source, engine.get_columns())
    return records, terms, term_issues + measure_issues

def format_measure_with_highlights(measure_id: str, name: str, flags: Dict[str, int], term_lists: Dict) -> str:
    # matched term (escaped, lower-cased) -> color of the first flag that matched it
    colors: Dict[str, str] = {}
    for key, (color, list_key) in _FLAG_STYLE.items():
        if flags.get(key) and list_key:
            for term in find_matches(name, term_lists.get(list_key)):
                colors.setdefault(html.escape(term).lower(), color)

    highlighted = html.escape(name)
    if colors:
        # single pass, longest term first, so inserted markup is never re-scanned
        pattern = re.compile(
            r"\b(" + "|".join(re.escape(t) for t in sorted(colors, key=len, reverse=True)) + r")\b",
            re.IGNORECASE,
        )
        highlighted = pattern.sub(
            lambda m: f'<span class="eem-hl" style="background-color:{colors.get(m.group(0).lower(), "#E5E7EB")};">'
                      f'{m.group(0)}</span>',
            highlighted,
        )

    explanations: List[str] = [
        f"<i>- {RULES[k]['label']}: {RULES[k]['description']}</i>" for k, v in flags.items() if v
    ]
    display_html = f'⚠️ <span class="eem-id">{html.escape(str(measure_id))}</span> {highlighted}'
    if explanations:
        display_html += "<br>" + "<br>".join(explanations)
    return f'<div class="eem-card">{display_html}</div>'

def error_badges(flags: Dict[str, int]) -> str:
    return "".join(
        f'<span class="eem-chip {k.lower()}">{RULES[k]["label"]}</span>'
        for k, v in flags.items() if v
    )


# =============================== UI Setup ===============================
st.set_page_config(page_title="EEM Name Checker", page_icon="🏷️", layout="wide")
st.markdown(_flag_css(), unsafe_allow_html=True)

# One RuleEngine instance per session
if "rule_engine" not in st.session_state:
    st.session_state.rule_engine = RuleEngine()
rule_engine = st.session_state.rule_engine

st.title("🏷️ EEM Name Checker")

tab_home, tab_analyze = st.tabs(["🏠 Home", "📄 Measure Analyzer"])

# Tabs are reloaded on every rerun so edits show up without restarting streamlit
home_tab = analyzer_tab = None

try:
    import ui.tabs.home_tab as _home_tab
    home_tab = importlib.reload(_home_tab)
except Exception as e:
    st.error(f"Home tab failed to import: {e}")

try:
    import ui.tabs.analyzer_tab as _analyzer_tab
    analyzer_tab = importlib.reload(_analyzer_tab)
except Exception as e:
    st.error(f"Analyzer tab failed to import: {e}")

CTX = {
    "DATA_DIR": DATA_DIR,
    "FLAG_COLORS": {k: color for k, (color, _) in _FLAG_STYLE.items()},
    "get_lemmatizer": get_lemmatizer,
    "load_terms": load_terms,
    "load_inputs": load_inputs,
    "format_measure_with_highlights": format_measure_with_highlights,
    "error_badges": error_badges,
}

with tab_home:
    if home_tab:
        home_tab.render(st, rule_engine, CTX)
    else:
        st.error("Home tab not available.")

with tab_analyze:
    if analyzer_tab:
        analyzer_tab.render(st, rule_engine, CTX)
    else:
        st.error("Analyzer tab not available.")
