"""Tests for the argparse command line entry point."""
from __future__ import annotations

import json
import logging
from unittest.mock import patch

import pytest

from survey_analyzer.app.cli import main


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def run(workbook, capsys):
    def _run(*args):
        code = main(["--file", str(workbook), "--log-level", "WARNING", *args])
        out, err = capsys.readouterr()
        return code, out, err

    return _run


def test_distribution(run):
    code, out, _ = run("distribution", "Lang")
    assert code == 0
    assert "Question Lang: Which programming languages have you worked with?" in out
    assert "Total Responses: 4" in out
    assert "  Python: 3 (75.0%)" in out


def test_distribution_threshold(run):
    code, out, _ = run("distribution", "Age", "--threshold", "40")
    assert code == 0
    assert "Answers above 40.0% threshold:" in out
    assert "  18-24: 2 (40.0%)" in out
    assert "35-44: 1 (20.0%)" in out.split("threshold:")[0]
    assert "35-44" not in out.split("threshold:")[1]


def test_distribution_chart(run, tmp_path):
    chart = tmp_path / "age.png"
    code, out, _ = run("distribution", "Age", "--chart", str(chart))
    assert code == 0
    assert chart.exists()
    assert f"Chart saved to {chart}" in out


def test_unknown_question_exits_with_error(run):
    code, out, err = run("distribution", "Salary")
    assert code == 1
    assert out == ""
    assert "Error: Question not found with ID: Salary" in err


def test_subset(run):
    code, out, _ = run("subset", "Lang", "Python")
    assert code == 0
    assert "Size: 3 respondents (50.0% of total)" in out
    assert "Respondent IDs: [0, 1, 3]" in out


def test_subset_detailed(run):
    code, out, _ = run("subset", "Age", "35-44", "--detailed")
    assert code == 0
    assert "--- Respondent 3 ---" in out
    assert "Lang: Python" in out
    assert "YearsCode: 10" in out


def test_strict_subset(run):
    code, _, err = run("subset", "Lang", "Go", "--strict")
    assert code == 1
    assert "Option not found for Lang: 'Go'" in err


def test_structure(run):
    code, out, _ = run("structure", "--limit", "2")
    assert code == 0
    assert "Survey Structure (2 questions, 6 respondents):" in out
    assert "Question Lang: Which programming languages have you worked with?" in out
    assert "  Options: Python, Rust, JavaScript, Java" in out
    assert "YearsCode" not in out


def test_structure_filter(run):
    code, out, _ = run("structure", "--filter", "describe")
    assert "Question Comment:" in out
    assert "Question Age:" not in out


def test_search(run):
    code, out, _ = run("search", "language")
    assert code == 0
    assert "Found 1 question(s) matching 'language':" in out
    assert "1. [Lang] Which programming languages have you worked with? (Type: MultipleChoice)" in out


def test_search_without_hits(run):
    _, out, _ = run("search", "salary")
    assert "No questions found matching 'salary'" in out


def test_search_by_id(run):
    _, out, _ = run("search", "yearscode")
    assert "No questions found matching 'yearscode'" in out
    _, out, _ = run("search", "yearscode", "--ids")
    assert "1. [YearsCode] How many years have you been coding? (Type: Numeric)" in out


def test_search_options(run):
    _, out, _ = run("search", "java", "--options")
    assert "Found 2 option(s) containing 'java':" in out
    assert "  Question Lang: JavaScript" in out


def test_options(run):
    code, out, _ = run("options", "Lang")
    assert code == 0
    assert "Total options: 4" in out
    assert "1. Java" in out


def test_intersect(run):
    code, out, _ = run("intersect", "Lang=Python", "Age=25-34")
    assert code == 0
    assert "Intersection of Lang='Python' AND Age='25-34'" in out
    assert "Size: 1 respondents (16.7% of total)" in out
    assert "Respondent IDs: [0]" in out


def test_intersect_rejects_malformed_pair(run):
    with pytest.raises(SystemExit) as exc:
        run("intersect", "Lang=Python", "Age")
    assert exc.value.code == 2


def test_compare(run):
    code, out, _ = run("compare", "Lang", "--group", "Age=25-34", "--group", "Age=18-24")
    assert code == 0
    assert "Comparison for Lang:" in out
    assert "  Age='25-34' (n=2):" in out
    assert "  Age='18-24' (n=1):" in out


def test_compare_needs_two_groups(run):
    code, _, err = run("compare", "Lang", "--group", "Age=25-34")
    assert code == 1
    assert "exactly two" in err


def test_crosstab(run):
    code, out, _ = run("crosstab", "Age", "Lang")
    assert code == 0
    assert "Python" in out
    assert "25-34" in out


def test_crosstab_without_overlap(run):
    _, out, _ = run("crosstab", "Comment", "YearsCode")
    assert "No respondents answered both questions." in out


def test_report(run, tmp_path):
    target = tmp_path / "report.md"
    code, out, _ = run("report", "--output", str(target))
    assert code == 0
    assert f"Report saved as: {target}" in out
    assert "# Survey Analysis Report" in target.read_text(encoding="utf-8")


def test_missing_file(tmp_path, capsys):
    code = main(["--file", str(tmp_path / "non_existent_file.xlsx"), "structure"])
    assert code == 1
    assert "Error: Failed to read Excel" in capsys.readouterr().err


@patch("survey_analyzer.app.cli.SurveyRepl")
def test_repl_command(mock_repl, run):
    code, _, _ = run("repl")
    assert code == 0
    mock_repl.return_value.run.assert_called_once_with()


def test_help_lists_commands(capsys):
    with pytest.raises(SystemExit):
        main(["--help"])
    out = capsys.readouterr().out
    for command in ("structure", "search", "distribution", "subset", "repl"):
        assert command in out


def test_json_logs_carry_the_command(workbook, capsys):
    code = main(["--file", str(workbook), "--log-level", "INFO", "--json-logs", "options", "Age"])
    assert code == 0
    lines = [json.loads(line) for line in capsys.readouterr().err.splitlines() if line.startswith("{")]
    assert lines
    assert {line["command"] for line in lines} == {"options"}
    assert any(line["msg"].startswith("Loading survey data from") for line in lines)
