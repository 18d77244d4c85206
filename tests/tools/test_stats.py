from __future__ import annotations

from unittest.mock import patch

import pytest

from survey_analyzer.app.errors import InvalidQuestionType, QuestionNotFound
from survey_analyzer.data.models import QuestionKind
from survey_analyzer.tools.stats import (
    DistributionResult,
    OptionCount,
    compute_distribution,
    crosstab,
    percentage,
    question_options,
)


def _result(counts, total, kind=QuestionKind.SINGLE_CHOICE):
    return DistributionResult(
        question_id="Q1",
        question_label="Favorite programming language",
        kind=kind,
        counts={opt: OptionCount(c, percentage(c, total)) for opt, c in counts.items()},
        total_responses=total,
    )


def test_most_popular_and_threshold():
    result = _result({"Rust": 150, "Python": 250, "JavaScript": 100}, 500)

    assert result.most_popular() == ("Python", 250, 50.0)
    above = result.above_threshold(30.0)
    # Threshold is inclusive: Rust sits exactly at 30%.
    assert [opt for opt, _, _ in above] == ["Python", "Rust"]


def test_items_ties_break_alphabetically():
    result = _result({"b": 2, "a": 2, "c": 5}, 9)
    assert [opt for opt, _, _ in result.items()] == ["c", "a", "b"]


def test_empty_result():
    result = _result({}, 0)
    assert result.most_popular() is None
    assert result.items() == []
    assert result.to_frame().empty


def test_percentage_of_zero_total():
    assert percentage(0, 0) == 0.0
    assert percentage(1, 4) == 25.0


def test_single_choice_distribution(dataset):
    result = compute_distribution(dataset, "Age")

    # "NA" is not a response.
    assert result.total_responses == 5
    assert result.items() == [("18-24", 2, 40.0), ("25-34", 2, 40.0), ("35-44", 1, 20.0)]
    assert result.total_option_count() == result.total_responses


def test_multiple_choice_distribution(dataset):
    result = compute_distribution(dataset, "Lang")

    assert result.total_responses == 4
    assert result.counts["Python"] == OptionCount(3, 75.0)
    assert [opt for opt, _, _ in result.items()] == ["Python", "Java", "JavaScript", "Rust"]
    # Each respondent counts once, each selected option counts once.
    assert result.total_option_count() == 6
    assert result.total_option_count() >= result.total_responses


def test_percentages_follow_counts(dataset):
    for qid in ("Age", "Lang", "YearsCode", "Comment"):
        result = compute_distribution(dataset, qid)
        for opt, count, pct in result.items():
            assert pct == pytest.approx(count / result.total_responses * 100.0)
            assert 0 < count <= result.total_responses


def test_numeric_and_text_are_counted_verbatim(dataset):
    years = compute_distribution(dataset, "YearsCode")
    assert [(opt, count) for opt, count, _ in years.items()] == [("10", 2), ("3", 1)]
    assert years.counts["10"].percentage == pytest.approx(66.667, rel=1e-3)
    assert compute_distribution(dataset, "Comment").items() == [("Love it", 1, 100.0)]


def test_restricted_distribution(dataset):
    result = compute_distribution(dataset, "Lang", respondent_ids=[0, 3, 3, 99])
    assert result.total_responses == 2
    assert result.counts == {"Python": OptionCount(2, 100.0), "Rust": OptionCount(1, 50.0)}


def test_restricted_to_missing_answers(dataset):
    result = compute_distribution(dataset, "Lang", respondent_ids=[4, 5])
    assert result.total_responses == 0
    assert result.counts == {}


def test_unknown_question(dataset):
    with pytest.raises(QuestionNotFound):
        compute_distribution(dataset, "Salary")


def test_kind_without_frequency_semantics(dataset):
    with patch("survey_analyzer.tools.stats.FREQUENCY_KINDS", frozenset({QuestionKind.SINGLE_CHOICE})):
        with pytest.raises(InvalidQuestionType):
            compute_distribution(dataset, "Lang")


def test_display_notes_multiple_choice_percentages(dataset):
    text = compute_distribution(dataset, "Lang").display()
    assert text.startswith("Question Lang: Which programming languages have you worked with?\n")
    assert "Type: MultipleChoice" in text
    assert "Note: Percentages are based on total responses" in text
    assert "  Python: 3 (75.0%)" in text
    assert "Note:" not in compute_distribution(dataset, "Age").display()


def test_to_frame(dataset):
    frame = compute_distribution(dataset, "Age").to_frame()
    assert list(frame.columns) == ["option", "count", "percentage"]
    assert frame["count"].tolist() == [2, 2, 1]


def test_question_options(dataset):
    assert question_options(dataset, "Lang") == ["Java", "JavaScript", "Python", "Rust"]
    assert question_options(dataset, "YearsCode") == ["10", "3"]
    assert question_options(dataset, "Comment") == ["Love it"]


def test_crosstab(dataset):
    table = crosstab(dataset, "Age", "Lang")
    assert table.loc["25-34", "Python"] == 1
    assert table.loc["18-24", "Python"] == 1
    assert table.loc["18-24", "Rust"] == 0
    assert table.loc["35-44", "Python"] == 1
    assert "NA" not in table.index


def test_crosstab_without_overlap(dataset):
    assert crosstab(dataset, "Comment", "YearsCode").empty
