from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from survey_analyzer.data.models import QuestionKind
from survey_analyzer.tools.analyzer import SurveyAnalyzer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportTopic:
    title: str
    question_id: str
    options: Tuple[str, ...]


DEFAULT_TOPICS: Tuple[ReportTopic, ...] = (
    ReportTopic(
        "Programming Language Popularity",
        "LanguageHaveWorkedWith",
        ("Python", "JavaScript", "HTML/CSS", "Java", "TypeScript", "Rust"),
    ),
    ReportTopic(
        "Database Technologies",
        "DatabaseHaveWorkedWith",
        ("PostgreSQL", "MySQL", "SQLite", "MongoDB"),
    ),
    ReportTopic(
        "Development Environments",
        "NEWCollabToolsHaveWorkedWith",
        ("Visual Studio Code", "Vim", "PyCharm", "IntelliJ"),
    ),
)

DEFAULT_DISTRIBUTION_QUESTIONS: Tuple[str, ...] = ("AISelect", "Age", "YearsCode", "SOVisitFreq")

# Used when none of the configured topics exist in the dataset.
AUTO_TOPIC_LIMIT = 3
AUTO_TOPIC_OPTIONS = 5
DISTRIBUTION_LINES = 10


def resolve_topics(analyzer: SurveyAnalyzer, topics: Sequence[ReportTopic] = DEFAULT_TOPICS) -> List[ReportTopic]:
    """
    Keep the configured topics whose question exists; otherwise derive topics
    from the first multiple-choice questions and their most common options.
    """
    questions = analyzer.dataset.questions
    present = [t for t in topics if t.question_id in questions]
    if present:
        return present

    auto: List[ReportTopic] = []
    for q in questions:
        if q.kind is not QuestionKind.MULTIPLE_CHOICE:
            continue
        dist = analyzer.get_distribution(q.id)
        options = tuple(opt for opt, _, _ in dist.items()[:AUTO_TOPIC_OPTIONS])
        if options:
            auto.append(ReportTopic(q.label, q.id, options))
        if len(auto) >= AUTO_TOPIC_LIMIT:
            break
    logger.info("No configured report topics in dataset; derived %d topics.", len(auto))
    return auto


def _topic_lines(analyzer: SurveyAnalyzer, topic: ReportTopic) -> List[Tuple[str, int, float]]:
    rows = []
    for option in topic.options:
        subset = analyzer.create_subset(topic.question_id, option)
        if subset.size() == 0:
            continue
        rows.append((option, subset.size(), subset.percentage_of_total()))
    return rows


def build_report(
    analyzer: SurveyAnalyzer,
    topics: Optional[Sequence[ReportTopic]] = None,
    distribution_questions: Sequence[str] = DEFAULT_DISTRIBUTION_QUESTIONS,
    title: str = "Survey Analysis Report",
    generated_at: Optional[datetime] = None,
) -> str:
    """
    Markdown summary of a dataset: counts, topic adoption rates, selected
    answer distributions and recommendations drawn from the leading options.
    """
    generated_at = generated_at or datetime.now(timezone.utc)
    resolved = resolve_topics(analyzer, DEFAULT_TOPICS if topics is None else topics)
    dataset = analyzer.dataset

    out: List[str] = []
    out.append(f"# {title}\n")
    out.append(f"Generated on: {generated_at.strftime('%Y-%m-%d %H:%M:%S UTC')}\n")

    out.append("## Executive Summary\n")
    out.append(f"- **Total Survey Questions**: {dataset.question_count}")
    out.append(f"- **Total Responses Analyzed**: {dataset.respondent_count}")
    out.append("")

    recommendations: List[str] = []

    out.append("## Key Findings\n")
    if not resolved:
        out.append("_No multiple-choice topics available._\n")
    for topic in resolved:
        out.append(f"### {topic.title}")
        rows = _topic_lines(analyzer, topic)
        if not rows:
            out.append("- No matching responses.")
        for option, count, pct in rows:
            out.append(f"- **{option}**: {pct:.1f}% ({count} developers)")
        out.append("")
        if rows:
            leader = min(rows, key=lambda r: (-r[1], r[0]))
            recommendations.append(
                f"**{topic.title}**: {leader[0]} leads with {leader[2]:.1f}% adoption "
                f"({leader[1]} of {dataset.respondent_count} respondents)."
            )

    present = [qid for qid in distribution_questions if qid in dataset.questions]
    if present:
        out.append("## Answer Distributions\n")
    for qid in present:
        dist = analyzer.get_distribution(qid)
        out.append(f"### {dist.question_label}")
        out.append(f"Valid responses: {dist.total_responses}\n")
        for option, count, pct in dist.items()[:DISTRIBUTION_LINES]:
            out.append(f"- {option}: {pct:.1f}% ({count} developers)")
        out.append("")
        top = dist.most_popular()
        if top is not None:
            recommendations.append(
                f"**{dist.question_label}**: the most common answer is '{top[0]}' ({top[2]:.1f}%)."
            )

    out.append("## Recommendations\n")
    if not recommendations:
        out.append("No recommendations: not enough answered questions.")
    for i, line in enumerate(recommendations, start=1):
        out.append(f"{i}. {line}")
    out.append("")

    out.append("---")
    out.append("*This report was generated by survey-analyzer.*")
    return "\n".join(out) + "\n"


def write_report(text: str, path: Union[str, Path]) -> Path:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(text, encoding="utf-8")
    logger.info("Report written to %s (%d bytes).", out, len(text.encode("utf-8")))
    return out
