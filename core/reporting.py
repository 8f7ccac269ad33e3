# core/reporting.py
import logging
import os
from typing import Dict, List, Optional, Sequence, Tuple

import matplotlib.pyplot as plt
import pandas as pd

from core import aggregator
from core.models import ERROR_FLAGS, CategorySummary, Issue, LengthSummary
from core.rule_engine import EvaluationResult

logger = logging.getLogger(__name__)

TOP_FIRST_WORDS = 30

SUMMARY_COLUMNS = ["cat_lev1", "total_eems"] + [f"error{k.split('_')[1]}_count" for k in ERROR_FLAGS]


# -------------------- tables --------------------

def flags_frame(result: EvaluationResult) -> pd.DataFrame:
    """The measure list with the seven error columns appended."""
    rows = [fr.as_row() for fr in result.records]
    columns = ["eem_id", "document", "cat_lev1", "cat_lev2", "eem_name", *ERROR_FLAGS]
    return pd.DataFrame(rows, columns=columns)


def summary_frame(summaries: Sequence[CategorySummary]) -> pd.DataFrame:
    rows = [
        [s.category, s.total] + [s.error_counts.get(k, 0) for k in ERROR_FLAGS]
        for s in summaries
    ]
    return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)


def frequency_frame(freqs: Sequence[Tuple[str, int]], label: str = "word") -> pd.DataFrame:
    return pd.DataFrame(list(freqs), columns=[label, "n"])


def length_summary_frame(summary: LengthSummary) -> pd.DataFrame:
    return pd.DataFrame([{
        "Minimum": summary.minimum,
        "Average": round(summary.mean, 1),
        "Median": round(summary.median, 1),
        "Maximum": summary.maximum,
    }])


def sample_measures_frame(samples: Sequence[Tuple[int, str]]) -> pd.DataFrame:
    return pd.DataFrame(list(samples), columns=["n", "eem_name"])


def issues_frame(issues: Sequence[Issue]) -> pd.DataFrame:
    return pd.DataFrame(
        [{"kind": i.kind, "source": i.source, "message": i.message, "count": i.count} for i in issues],
        columns=["kind", "source", "message", "count"],
    )


# -------------------- charts --------------------

def length_histogram(counts: Sequence[int]):
    """Histogram of words per measure name, one bar per word count."""
    fig, ax = plt.subplots(figsize=(6.49, 4.06))
    if counts:
        lo, hi = min(counts), max(counts)
        ax.hist(counts, bins=[x - 0.5 for x in range(lo, hi + 2)], color="lightblue")
        ax.set_xticks(range(lo, hi + 1))
    ax.set_xlabel("Number of words in the measure")
    ax.set_ylabel("Number of measures")
    ax.spines[["top", "right"]].set_visible(False)
    fig.tight_layout()
    return fig


# -------------------- export --------------------

def build_tables(result: EvaluationResult, extra_issues: Optional[Sequence[Issue]] = None) -> Dict[str, pd.DataFrame]:
    """Every report table keyed by its output file name."""
    names = [fr.record.name for fr in result.records]
    records = [fr.record for fr in result.records]
    counts = aggregator.token_counts(names)
    return {
        "measure-list-errors.csv": flags_frame(result),
        "summary-table-errors.csv": summary_frame(aggregator.summarize(result.records)),
        "word-table.csv": frequency_frame(aggregator.word_frequencies(names), "word"),
        "bigram-table.csv": frequency_frame(aggregator.bigram_frequencies(names), "bigram"),
        "top-first-words.csv": frequency_frame(
            aggregator.first_word_frequencies(records)[:TOP_FIRST_WORDS], "word"
        ),
        "sample-measures.csv": sample_measures_frame(aggregator.sample_measures(names)),
        "length-summary.csv": length_summary_frame(aggregator.length_summary(counts)),
        "issues.csv": issues_frame(list(extra_issues or []) + list(result.issues)),
    }


def export_results(
    result: EvaluationResult,
    out_dir: str,
    extra_issues: Optional[Sequence[Issue]] = None,
) -> List[str]:
    """Writes every table plus figure-1.png into `out_dir`; returns the paths written."""
    os.makedirs(out_dir, exist_ok=True)
    written: List[str] = []
    for file_name, df in build_tables(result, extra_issues).items():
        path = os.path.join(out_dir, file_name)
        df.to_csv(path, index=False)
        written.append(path)

    counts = aggregator.token_counts(fr.record.name for fr in result.records)
    fig = length_histogram(counts)
    fig_path = os.path.join(out_dir, "figure-1.png")
    try:
        fig.savefig(fig_path, dpi=300, facecolor="white")
    finally:
        plt.close(fig)
    written.append(fig_path)

    logger.info("Wrote %d result files to %s", len(written), out_dir)
    return written
