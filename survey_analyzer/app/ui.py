"""
Streamlit explorer for a survey workbook.

Run with:  streamlit run survey_analyzer/app/ui.py
"""
from __future__ import annotations

import hashlib
import os
import tempfile
from pathlib import Path
from typing import List, Optional

import streamlit as st

from survey_analyzer.app.config import Settings
from survey_analyzer.app.errors import AppError
from survey_analyzer.tools.analyzer import SurveyAnalyzer
from survey_analyzer.tools.report import build_report
from survey_analyzer.tools.subsets import SubsetResult


@st.cache_resource
def get_settings() -> Settings:
    return Settings.from_env()


@st.cache_resource(show_spinner="Loading survey data...")
def load_uploaded(name: str, digest: str, _payload: bytes, schema_sheet: str, data_sheet: str) -> SurveyAnalyzer:
    # Cached by digest; _payload is excluded from hashing. The temp file only lives for the load.
    suffix = Path(name).suffix or ".xlsx"
    fd, temp_path = tempfile.mkstemp(suffix=suffix)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(_payload)
        return SurveyAnalyzer.from_file(
            temp_path,
            schema_sheet=schema_sheet,
            data_sheet=data_sheet,
            kind_overrides=get_settings().kind_overrides,
        )
    finally:
        os.remove(temp_path)


@st.cache_resource(show_spinner="Loading survey data...")
def load_path(path: str, schema_sheet: str, data_sheet: str) -> SurveyAnalyzer:
    return SurveyAnalyzer.from_file(
        path,
        schema_sheet=schema_sheet,
        data_sheet=data_sheet,
        kind_overrides=get_settings().kind_overrides,
    )


def _sidebar(settings: Settings) -> Optional[SurveyAnalyzer]:
    with st.sidebar:
        st.header("📂 Survey data")
        uploaded = st.file_uploader("Upload Excel/CSV", type=["xlsx", "csv"])
        path = st.text_input("...or a local path", value=settings.data_file)
        schema_sheet = st.text_input("Schema sheet", value=settings.schema_sheet)
        data_sheet = st.text_input("Data sheet", value=settings.data_sheet)

        try:
            if uploaded is not None:
                payload = uploaded.getvalue()
                digest = hashlib.sha256(payload).hexdigest()
                analyzer = load_uploaded(uploaded.name, digest, payload, schema_sheet, data_sheet)
            elif path and Path(path).exists():
                analyzer = load_path(path, schema_sheet, data_sheet)
            else:
                st.info("Upload a workbook or point to an existing file.")
                return None
        except AppError as e:
            st.error(f"Error: {e}")
            return None

        st.divider()
        st.metric("Questions", analyzer.dataset.question_count)
        st.metric("Respondents", analyzer.respondent_count)
        return analyzer


def _questions_tab(analyzer: SurveyAnalyzer) -> None:
    term = st.text_input("Search questions", value="")
    in_options = st.checkbox("Search answer options instead")
    if in_options:
        hits = analyzer.search_options(term)
        st.dataframe([{"question": qid, "option": opt} for qid, opt in hits], use_container_width=True)
        return
    rows = [
        {"id": q.id, "question": q.label, "type": q.kind.value, "options": len(q.known_options)}
        for q in analyzer.search_questions(term)
    ]
    st.dataframe(rows, use_container_width=True)


def _distribution_tab(analyzer: SurveyAnalyzer) -> None:
    ids = [q.id for q in analyzer.list_questions()]
    qid = st.selectbox("Question", ids, key="dist_question")
    if not qid:
        return
    result = analyzer.get_distribution(qid)
    st.caption(f"{result.question_label} · {result.kind.value} · {result.total_responses} valid responses")
    if result.kind.is_multi_value:
        st.caption("Percentages are relative to respondents, not to selected options.")
    frame = result.to_frame()
    st.dataframe(frame, use_container_width=True)
    if not frame.empty:
        st.bar_chart(frame.head(20).set_index("option")["percentage"])


def _subset_tab(analyzer: SurveyAnalyzer) -> None:
    ids = [q.id for q in analyzer.list_questions()]
    groups: List[SubsetResult] = []
    cols = st.columns(2)
    for i, col in enumerate(cols):
        with col:
            qid = st.selectbox(f"Question {i + 1}", ids, key=f"subset_q{i}")
            options = analyzer.question_options(qid) if qid else []
            option = st.selectbox(f"Option {i + 1}", options, key=f"subset_o{i}")
            if qid and option:
                subset = analyzer.create_subset(qid, option)
                groups.append(subset)
                st.metric("Respondents", subset.size(), f"{subset.percentage_of_total():.1f}% of total")
    if len(groups) == 2:
        survivors = analyzer.intersect(groups[0], groups[1])
        st.subheader("Intersection")
        st.write(f"{len(survivors)} respondents match both selections.")


def main() -> None:
    st.set_page_config(page_title="Survey Analyzer", page_icon="📊", layout="wide")
    st.title("📊 Survey Analyzer")

    analyzer = _sidebar(get_settings())
    if analyzer is None:
        return

    tab1, tab2, tab3, tab4 = st.tabs(["🔍 Questions", "📊 Distribution", "👥 Subsets", "📝 Report"])
    with tab1:
        _questions_tab(analyzer)
    with tab2:
        _distribution_tab(analyzer)
    with tab3:
        _subset_tab(analyzer)
    with tab4:
        report = build_report(analyzer)
        st.download_button("Download report", report, file_name="survey_analysis_report.md")
        st.markdown(report)


if __name__ == "__main__":
    main()
