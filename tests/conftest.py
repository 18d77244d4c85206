"""Shared fixtures: a small six-respondent survey, in memory and as a workbook."""
from __future__ import annotations

import pandas as pd
import pytest

from survey_analyzer.data.dataset import SurveyDataset
from survey_analyzer.data.models import Question, QuestionKind
from survey_analyzer.tools.analyzer import SurveyAnalyzer


QUESTIONS = [
    Question("Age", "What is your age?", QuestionKind.SINGLE_CHOICE, position=0),
    Question("Lang", "Which programming languages have you worked with?", QuestionKind.MULTIPLE_CHOICE, position=1),
    Question("YearsCode", "How many years have you been coding?", QuestionKind.NUMERIC, position=2),
    Question("Comment", "Anything else you want to describe?", QuestionKind.TEXT, position=3),
]

# Respondent id == list index.
RECORDS = [
    {"Age": "25-34", "Lang": "Python;Rust", "YearsCode": "10"},
    {"Age": "18-24", "Lang": "JavaScript;Python", "YearsCode": "3"},
    {"Age": "25-34", "Lang": "Java", "Comment": "Love it"},
    {"Age": "35-44", "Lang": "Python", "YearsCode": "10"},
    {"Age": "NA", "Lang": "NA"},
    {"Age": "18-24", "Lang": "", "YearsCode": "NA"},
]


@pytest.fixture
def dataset() -> SurveyDataset:
    return SurveyDataset.build(QUESTIONS, RECORDS, source="fixture")


@pytest.fixture
def analyzer(dataset) -> SurveyAnalyzer:
    return SurveyAnalyzer(dataset)


def write_workbook(path, schema: pd.DataFrame, data: pd.DataFrame, data_sheet: str = "raw data") -> None:
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        schema.to_excel(writer, sheet_name="schema", index=False)
        data.to_excel(writer, sheet_name=data_sheet, index=False)


@pytest.fixture
def workbook(tmp_path):
    """Two-sheet workbook holding the same survey, plus a column the schema does not list."""
    schema = pd.DataFrame(
        [
            {"column": "Age", "question_text": "What is your age?", "type": "SC"},
            {"column": "Lang", "question_text": "Which programming languages have you worked with?", "type": "MC"},
            {"column": "YearsCode", "question_text": "How many years have you been coding?", "type": "Numeric"},
            {"column": "Comment", "question_text": "Anything else you want to describe?", "type": "TE"},
        ]
    )
    rows = [
        {"Age": "25-34", "Lang": "Python;Rust", "YearsCode": 10, "Comment": None, "Extra": None},
        {"Age": "18-24", "Lang": "JavaScript;Python", "YearsCode": 3, "Comment": None, "Extra": None},
        {"Age": "25-34", "Lang": "Java", "YearsCode": None, "Comment": "Love it", "Extra": None},
        {"Age": "35-44", "Lang": "Python", "YearsCode": 10, "Comment": None, "Extra": None},
        {"Age": "NA", "Lang": "NA", "YearsCode": None, "Comment": None, "Extra": None},
        {"Age": "18-24", "Lang": None, "YearsCode": "NA", "Comment": None, "Extra": "ignored"},
    ]
    path = tmp_path / "survey.xlsx"
    write_workbook(path, schema, pd.DataFrame(rows, columns=["Age", "Lang", "YearsCode", "Comment", "Extra"]))
    return path
