from __future__ import annotations

from pathlib import Path

import streamlit as st
from dotenv import load_dotenv

from gcr.cli.formatter import exit_decision, split_by_origin
from gcr.core.errors import ReviewError
from gcr.core.reviewer import review_code
from gcr.core.rules import RuleLoader
from gcr.core.schemas import FileToReview, ReviewConfig
from gcr.core.settings import (
    DEFAULT_RULES_DIR,
    DEFAULT_TAGS,
    DEFAULT_TEMPERATURE,
    get_api_key,
    parse_tags,
    resolve_model,
)
from gcr.ui.frames import filter_issues, issues_frame
from gcr.utils.fs import detect_language

load_dotenv()


def inject_css():
    st.markdown(
        """
        <style>
        .stApp {
            background: #F7F9FC;
        }
        .block-container {
            padding-top: 2rem;
            padding-bottom: 2rem;
            max-width: 1200px;
        }
        section[data-testid="stSidebar"] {
            background: #FFFFFF !important;
            border-right: 1px solid #E5E7EB;
        }
        div[data-testid="stDataFrame"] {
            border-radius: 12px;
            overflow: hidden;
            border: 1px solid #E5E7EB;
            background: #FFFFFF;
        }
        .gcr-badge {
            display: inline-block;
            padding: 6px 10px;
            border-radius: 999px;
            background: #F1F5F9;
            border: 1px solid #CBD5E1;
            color: #0F172A;
            font-size: 0.9rem;
            font-weight: 600;
        }
        </style>
        """,
        unsafe_allow_html=True,
    )


def decode_bytes(data: bytes) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return data.decode("latin-1", errors="replace")


def score_badge(score: float) -> str:
    if score >= 90:
        icon, label = "🟢", "Excellent"
    elif score >= 70:
        icon, label = "🔵", "Good"
    elif score >= 50:
        icon, label = "🟡", "Fair"
    else:
        icon, label = "🔴", "Needs improvement"
    return f'<span class="gcr-badge">{icon} <b>{score:g}/100</b> · {label}</span>'


st.set_page_config(page_title="Gemini Code Review", layout="wide")
inject_css()

st.title("Gemini Code Review")
st.caption("Upload a source file. Your team rules guide the review; the model reports what else it finds.")

with st.sidebar:
    st.header("Settings")
    api_key = st.text_input("Google API key", value=get_api_key() or "", type="password")
    model = st.text_input("Gemini model", value=resolve_model())
    temperature = st.slider("Temperature", min_value=0.0, max_value=1.0, value=DEFAULT_TEMPERATURE, step=0.05)
    deep_thinking = st.checkbox("Deep thinking", value=True)

    st.divider()
    st.subheader("Rules")
    rules_dir = st.text_input("Rules directory", value=DEFAULT_RULES_DIR)
    tags = parse_tags(st.text_input("Tags (comma-separated)", value=",".join(DEFAULT_TAGS)))

    st.divider()
    st.subheader("Filters")
    sev_filter = st.multiselect(
        "Severity",
        options=["critical", "high", "medium", "low"],
        default=["critical", "high", "medium", "low"],
    )
    search = st.text_input("Search in title/description", value="").strip()

uploaded = st.file_uploader("Upload a code file", type=None, accept_multiple_files=False)

if not uploaded:
    st.info("Upload a code file to review.")
    st.stop()

if st.button("Review now", use_container_width=True):
    if not api_key:
        st.error("A Google API key is required.")
        st.stop()
    if not Path(rules_dir).is_dir():
        st.error(f"Rules directory not found: {rules_dir}")
        st.stop()

    loader = RuleLoader(rules_dir)
    loader.load_rules()
    files = [FileToReview(path=uploaded.name, content=decode_bytes(uploaded.getvalue()), language=detect_language(uploaded.name))]
    config = ReviewConfig(
        model=model,
        enable_deep_thinking=deep_thinking,
        temperature=temperature,
        api_key=api_key,
    )

    with st.spinner(f"Reviewing {uploaded.name}..."):
        try:
            st.session_state["result"] = review_code(
                files,
                loader.compile_rules_for_prompt(tags),
                config=config,
                known_rule_ids=loader.rule_ids(tags),
            )
        except ReviewError as e:
            st.session_state.pop("result", None)
            st.error(f"Review failed: {e}")
            st.stop()

result = st.session_state.get("result")
if result is None:
    st.warning("Click **Review now** to generate feedback.")
    st.stop()

header_left, header_right = st.columns([3, 2])
with header_left:
    st.markdown(f"### 📄 {', '.join(result.files_reviewed)}")
    st.write(f"**Summary:** {result.summary}")
with header_right:
    st.markdown(score_badge(result.overall_score), unsafe_allow_html=True)
    rule_based, ai_discovered = split_by_origin(result.issues)
    st.caption(f"{len(rule_based)} from team rules · {len(ai_discovered)} AI insights · {result.total_lines} lines")

decision = exit_decision(result)
if decision.level == "failed":
    st.error(decision.message)
elif decision.level == "warning":
    st.warning(decision.message)
else:
    st.success(decision.message)

if result.thinking_trace:
    with st.expander("Reasoning trace"):
        st.text(result.thinking_trace)

df = filter_issues(issues_frame(result), sev_filter, search)
if len(df):
    st.dataframe(df, use_container_width=True, hide_index=True)
else:
    st.success("No findings (after filters).")
