# ui/tabs/analyzer_tab.py
import matplotlib.pyplot as plt
import pandas as pd
from wordcloud import WordCloud

from core import aggregator
from core.models import ERROR_FLAGS
from core.reporting import build_tables, length_histogram
from core.rules import RULES


def render(st, rule_engine, CTX):
    """
    Measure Analyzer tab.
    Expects:
      - rule_engine: RuleEngine instance shared by the session
      - CTX: dict of helpers injected from app.py
    """
    # ---- CTX helpers ---------------------------------------------------------
    get_lemmatizer = CTX["get_lemmatizer"]
    load_terms = CTX["load_terms"]
    load_inputs = CTX["load_inputs"]
    format_measure_with_highlights = CTX["format_measure_with_highlights"]
    error_badges = CTX["error_badges"]

    # --- Getting started ------------------------------------------------------
    with st.expander("Getting started", expanded=False):
        st.markdown(
            "<div style='margin-left:16px'>"
            "• Type a single measure name for a quick check, or<br/>"
            "• upload a measure list CSV (<code>eem_id, document, cat_lev1, cat_lev2, eem_name</code>) "
            "or use the bundled sample.<br/>"
            "• Optionally replace any of the term lists, then click Analyze."
            "</div>",
            unsafe_allow_html=True,
        )

    # ---- Settings ------------------------------------------------------------
    c_thr, c_lem = st.columns(2)
    with c_thr:
        threshold = st.number_input(
            "Excessive length threshold (words)",
            min_value=1, max_value=50,
            value=rule_engine.get_length_threshold(),
            key="length_threshold",
        )
        rule_engine.set_length_threshold(int(threshold))
    with c_lem:
        use_lemmatizer = st.checkbox("Lemmatize names for element matching (spaCy)", value=True, key="use_lemmatizer")

    lemmatizer = get_lemmatizer() if use_lemmatizer else None
    if use_lemmatizer and lemmatizer is None:
        st.warning("spaCy or its English model is not installed; element matching uses raw names only.")

    # ---- Term lists ----------------------------------------------------------
    with st.expander("Term lists (optional uploads replace the bundled lists)", expanded=False):
        term_files = {
            "tentative": st.file_uploader("Tentative terms (column: terms)", type=["csv"], key="up_tentative"),
            "action": st.file_uploader("Action terms (column: terms)", type=["csv"], key="up_action"),
            "element": st.file_uploader("Categorization tags (columns: keyword, type)", type=["csv"], key="up_element"),
            "vague": st.file_uploader("Vague terms (column: terms)", type=["csv"], key="up_vague"),
            "synonyms": st.file_uploader("Synonymous terms (columns: first_term..fourth_term)", type=["csv"], key="up_synonyms"),
        }

    # ---- Quick check ---------------------------------------------------------
    st.subheader("Quick check")
    quick_name = st.text_input("Measure name", placeholder="e.g. Install flow rate meters", key="quick_name")
    if quick_name.strip():
        terms, _ = load_terms(rule_engine, term_files)
        # synonyms attested in the last analyzed list, if any
        prev = st.session_state.get("eem_result")
        attested = prev.attested_synonyms if prev else None
        flags = rule_engine.evaluate_name(quick_name, terms, lemmatizer, attested=attested)
        term_lists = {"tentative": terms.tentative, "action": terms.action, "vague": terms.vague,
                      "attested": attested}
        if any(flags.values()):
            st.markdown(format_measure_with_highlights("", quick_name, flags, term_lists), unsafe_allow_html=True)
        else:
            st.success("✅ Name follows all automated naming rules.")

    # ---- Batch analysis ------------------------------------------------------
    st.subheader("Measure list")
    measures_file = st.file_uploader("Upload a measure list (.csv)", type=["csv"], key="up_measures")
    if measures_file is None:
        st.caption("No upload: the bundled sample measure list will be analyzed.")

    if st.button("Analyze", key="btn_analyze", type="primary"):
        try:
            records, terms, issues = load_inputs(rule_engine, measures_file, term_files)
        except FileNotFoundError as e:
            st.error(f"Measure list not found: {e}")
            return
        with st.spinner("Checking measure names..."):
            result = rule_engine.evaluate(records, terms, lemmatizer)
        st.session_state.eem_result = result
        st.session_state.eem_terms = terms
        st.session_state.eem_issues = issues

    result = st.session_state.get("eem_result")
    if not result:
        return
    terms = st.session_state.eem_terms
    load_issues = st.session_state.get("eem_issues", [])

    # ---- Degradations --------------------------------------------------------
    for issue in load_issues + result.issues:
        st.warning(f"{issue.kind} · {issue.source}: {issue.message} ({issue.count})")

    # ---- Headline metrics ----------------------------------------------------
    total = len(result.records)
    flagged_list = [r for r in result.records if r.flagged]
    st.markdown(f"**Analyzed:** {total} • **Flagged:** {len(flagged_list)}")
    totals = result.flag_totals()
    cols = st.columns(len(ERROR_FLAGS))
    for col, key in zip(cols, ERROR_FLAGS):
        col.metric(RULES[key]["label"], totals[key])

    tables = build_tables(result, load_issues)

    st.subheader("Errors by category")
    st.dataframe(tables["summary-table-errors.csv"], use_container_width=True, hide_index=True)
    st.bar_chart(pd.Series({RULES[k]["label"]: v for k, v in totals.items()}))

    # ---- Length distribution -------------------------------------------------
    st.subheader("Measure name length")
    names = [r.record.name for r in result.records]
    counts = aggregator.token_counts(names)
    st.dataframe(tables["length-summary.csv"], hide_index=True)
    fig = length_histogram(counts)
    st.pyplot(fig)
    plt.close(fig)
    with st.expander("Sample measure for each length"):
        st.dataframe(tables["sample-measures.csv"], hide_index=True, use_container_width=True)

    # ---- Words ---------------------------------------------------------------
    st.subheader("Top words and bigrams")
    word_freq = dict(aggregator.word_frequencies(names))
    if word_freq:
        wc = WordCloud(width=900, height=300, background_color="white").generate_from_frequencies(word_freq)
        fig_wc, ax = plt.subplots(figsize=(9, 3))
        ax.imshow(wc, interpolation="bilinear")
        ax.axis("off")
        st.pyplot(fig_wc)
        plt.close(fig_wc)
    c1, c2, c3 = st.columns(3)
    c1.dataframe(tables["word-table.csv"], hide_index=True, use_container_width=True)
    c2.dataframe(tables["bigram-table.csv"], hide_index=True, use_container_width=True)
    c3.dataframe(tables["top-first-words.csv"], hide_index=True, use_container_width=True)

    # ---- Flagged measures ----------------------------------------------------
    term_lists = {"tentative": terms.tentative, "action": terms.action, "vague": terms.vague,
                  "attested": result.attested_synonyms}
    with st.expander(f"Flagged ({len(flagged_list)})", expanded=True):
        if not flagged_list:
            st.caption("None 🎉")
        for r in flagged_list:
            st.markdown(
                format_measure_with_highlights(r.record.id, r.record.name, r.flags, term_lists),
                unsafe_allow_html=True,
            )
            st.markdown(error_badges(r.flags), unsafe_allow_html=True)

    # ---- Downloads -----------------------------------------------------------
    st.subheader("Downloads")
    dl_cols = st.columns(3)
    for i, (file_name, df) in enumerate(tables.items()):
        dl_cols[i % 3].download_button(
            f"Download {file_name}",
            data=df.to_csv(index=False).encode("utf-8"),
            file_name=file_name,
            mime="text/csv",
            key=f"dl_{file_name}",
        )
