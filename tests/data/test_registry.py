from __future__ import annotations

import pytest

from survey_analyzer.app.errors import QuestionNotFound
from survey_analyzer.data.models import Question, QuestionKind
from survey_analyzer.data.registry import QuestionRegistry, compile_term


@pytest.fixture
def registry():
    return QuestionRegistry(
        [
            Question("LanguageHaveWorkedWith", "What LanguageHaveWorkedWith do you use?", QuestionKind.MULTIPLE_CHOICE),
            Question("Age", "What is your age?", QuestionKind.SINGLE_CHOICE),
            Question("WorkExp", "Years of professional work experience", QuestionKind.NUMERIC),
        ]
    )


def test_lookup_returns_question(registry):
    assert registry.lookup("Age").label == "What is your age?"


def test_lookup_unknown_raises(registry):
    with pytest.raises(QuestionNotFound) as exc:
        registry.lookup("Salary")
    assert exc.value.question_id == "Salary"
    assert str(exc.value) == "Question not found with ID: Salary"


def test_iteration_keeps_load_order(registry):
    assert registry.ids() == ("LanguageHaveWorkedWith", "Age", "WorkExp")
    assert [q.id for q in registry] == list(registry.ids())
    assert len(registry) == 3
    assert "Age" in registry
    assert "Nope" not in registry


def test_duplicate_ids_rejected():
    q = Question("Q1", "First", QuestionKind.TEXT)
    with pytest.raises(ValueError):
        QuestionRegistry([q, q])


def test_search_is_case_insensitive_substring(registry):
    hits = list(registry.search("language"))
    assert [q.id for q in hits] == ["LanguageHaveWorkedWith"]


def test_search_matches_labels_only_by_default(registry):
    # "workexp" is only the column id.
    assert list(registry.search("workexp")) == []
    assert [q.id for q in registry.search("workexp", include_ids=True)] == ["WorkExp"]


def test_search_empty_term_matches_everything(registry):
    assert len(list(registry.search(""))) == 3


def test_search_no_hits(registry):
    assert list(registry.search("salary")) == []


def test_search_is_lazy(registry):
    it = registry.search("what")
    assert next(it).id == "LanguageHaveWorkedWith"
    assert next(it).id == "Age"


def test_plain_search_escapes_metacharacters(registry):
    # "?" is literal unless regex is requested.
    assert [q.id for q in registry.search("age?")] == ["Age"]


def test_regex_search(registry):
    assert [q.id for q in registry.search(r"^years\b", regex=True)] == ["WorkExp"]


def test_invalid_regex_falls_back_to_literal():
    pattern = compile_term("[unclosed", regex=True)
    assert pattern.search("an [UNCLOSED bracket")
    assert not pattern.search("unclosed")
