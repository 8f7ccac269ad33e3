# main.py - EEM name checker, batch run
# Flags every measure name in a CSV against the naming best-practice rules
# and writes the result tables and length histogram to an output folder.

import argparse
import logging
import os
import sys

from core import aggregator
from core.lemmatizer import load_default_lemmatizer
from core.loaders import load_measures, load_term_set
from core.reporting import export_results, summary_frame
from core.rule_engine import DEFAULT_RULES_PATH, PROJECT_ROOT, RuleEngine
from core.rules import RULES

logger = logging.getLogger("eemcheck")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Check energy efficiency measure names for common naming errors.")
    parser.add_argument("--data-dir", default=os.path.join(PROJECT_ROOT, "data"),
                        help="Folder holding the measure list and term list CSVs.")
    parser.add_argument("--measures", default=None,
                        help="Measure list CSV (default: the 'measures' source in the rule file, inside --data-dir).")
    parser.add_argument("--rules", default=DEFAULT_RULES_PATH, help="JSON rule file.")
    parser.add_argument("--out", default="results", help="Output folder for tables and figures.")
    parser.add_argument("--threshold", type=int, default=None, help="Override the excessive-length threshold.")
    parser.add_argument("--no-lemmatizer", action="store_true",
                        help="Skip spaCy; element matching uses raw names only.")
    parser.add_argument("--name", default=None, help="Check a single measure name and exit.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    return parser.parse_args(argv)


def check_single_name(name, engine, terms, lemmatizer):
    flags = engine.evaluate_name(name, terms, lemmatizer)
    print(f"\n--- ANALYSIS: {name!r} ---")
    found = [k for k, v in flags.items() if v]
    for key, value in flags.items():
        mark = "x" if value else " "
        print(f"  [{mark}] {key}  {RULES[key]['label']}")
    if found:
        print(f"Found {len(found)} naming issue(s).")
    else:
        print("Name follows all automated naming rules.")
    if lemmatizer is None:
        print("(Error_6 checked without a lemmatizer.)")


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    engine = RuleEngine(args.rules)
    if args.threshold is not None:
        engine.set_length_threshold(args.threshold)

    terms, term_issues = load_term_set(args.data_dir, engine)
    lemmatizer = None if args.no_lemmatizer else load_default_lemmatizer()

    if args.name is not None:
        check_single_name(args.name, engine, terms, lemmatizer)
        return 0

    measures_path = args.measures or os.path.join(args.data_dir, engine.get_source("measures"))
    try:
        records, measure_issues = load_measures(measures_path, engine.get_columns())
    except FileNotFoundError:
        logger.error("Measure list not found: %s", measures_path)
        return 1

    result = engine.evaluate(records, terms, lemmatizer)
    issues = term_issues + measure_issues
    written = export_results(result, args.out, extra_issues=issues)

    print("\n--- Distribution of measures and errors across technology categories ---")
    print(summary_frame(aggregator.summarize(result.records)).to_string(index=False))

    all_issues = issues + result.issues
    if all_issues:
        print("\n--- Degraded inputs ---")
        for issue in all_issues:
            print(f"  {issue.kind} [{issue.source}] {issue.message} ({issue.count})")

    print(f"\nWrote {len(written)} files to {os.path.abspath(args.out)}")
    return 0


# This standard Python construct ensures the main() function is called when the script is run directly.
if __name__ == "__main__":
    sys.exit(main())
