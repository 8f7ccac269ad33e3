# ui/tabs/home_tab.py
from __future__ import annotations

from core.rules import RULES


def render(st, rule_engine, CTX):
    flag_colors = CTX.get("FLAG_COLORS", {})

    st.markdown("""
    <style>
      .eem-intro { max-width: 900px; line-height: 1.55; margin-bottom: 18px; }
      .eem-rules { display:flex; flex-wrap:wrap; gap:12px; }
      .eem-rule {
        flex: 1 1 280px; padding:12px 14px; border-radius:8px;
        border:1px solid rgba(0,0,0,.08); border-left-width:6px;
      }
      .eem-rule .flag { font-size:12px; letter-spacing:.04em; text-transform:uppercase; opacity:.7; }
      .eem-rule h4 { margin:2px 0 6px; font-size:16px; }
      .eem-rule p  { margin:0; font-size:14px; }
    </style>
    """, unsafe_allow_html=True)

    st.subheader("What does the checker do?")
    st.markdown(
        '<div class="eem-intro">'
        'Energy and water efficiency measure names should start with a single, definite action and name the '
        'building element it acts on, e.g. <i>Install flow rate meters</i>. The checker scans a measure list '
        'for the common naming errors below using curated term lists, and summarizes name length, top words '
        'and bigrams, and error counts per technology category.'
        '</div>',
        unsafe_allow_html=True,
    )

    st.subheader("Automated checks")
    cards = "".join(
        f'<div class="eem-rule" style="border-left-color:{flag_colors.get(key, "#E5E7EB")}">'
        f'<div class="flag">{key.replace("_", " ")}</div>'
        f'<h4>{meta["label"]}</h4><p>{meta["description"]}</p></div>'
        for key, meta in RULES.items()
    )
    st.markdown(f'<div class="eem-rules">{cards}</div>', unsafe_allow_html=True)
    st.caption(
        "Common Error 2 (naming the end result instead of the action) needs a reviewer and is not checked. "
        f"Excessive length currently means more than {rule_engine.get_length_threshold()} words."
    )

    with st.expander("Rule configuration", expanded=False):
        st.json(rule_engine.debug_summary())
