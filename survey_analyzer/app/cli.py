from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional, Sequence

import pandas as pd

from survey_analyzer.app.config import Settings
from survey_analyzer.app.errors import AppError
from survey_analyzer.app.formatting import (
    format_comparison,
    format_intersection,
    format_option_hits,
    format_options,
    format_question,
    format_structure,
    format_threshold,
)
from survey_analyzer.app.logging import clear_command, set_command, setup_logging
from survey_analyzer.app.repl import SurveyRepl, parse_pair
from survey_analyzer.data.models import is_missing
from survey_analyzer.tools.analyzer import SurveyAnalyzer
from survey_analyzer.tools.report import build_report, write_report
from survey_analyzer.tools.viz import plot_distribution

logger = logging.getLogger(__name__)

DETAILED_LIMIT = 10


def _pair(token: str):
    try:
        return parse_pair(token)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="survey-analyzer",
        description="Survey Data Analyzer: search questions, answer distributions and respondent subsets.",
    )
    parser.add_argument("-f", "--file", default=settings.data_file, help="Path to the survey workbook (.xlsx) or CSV")
    parser.add_argument("--schema-sheet", default=settings.schema_sheet, help="Name of the question metadata sheet")
    parser.add_argument("--data-sheet", default=settings.data_sheet, help="Name of the respondent answers sheet")
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level (DEBUG, INFO, ...)")
    parser.add_argument("--json-logs", action="store_true", default=settings.log_json, help="Emit JSON log lines")

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("structure", help="Display the survey structure (list of questions)")
    p.add_argument("-l", "--limit", type=int, help="Show only the first N questions")
    p.add_argument("--filter", help="Show questions containing this term")

    p = sub.add_parser("search", help="Search questions or options")
    p.add_argument("term")
    p.add_argument("-o", "--options", action="store_true", help="Search answer options instead of questions")
    p.add_argument("--regex", action="store_true", help="Treat the term as a regular expression")
    p.add_argument("--ids", action="store_true", help="Also match question ids")

    p = sub.add_parser("distribution", help="Display the answer distribution for a question")
    p.add_argument("question_id")
    p.add_argument("-t", "--threshold", type=float, default=0.0, help="Also list answers at or above this percentage")
    p.add_argument("--chart", help="Write a bar chart PNG to this path")
    p.add_argument("--top-k", type=int, default=settings.chart_top_k, help="Options shown in the chart")

    p = sub.add_parser("subset", help="Create a subset of respondents")
    p.add_argument("question_id")
    p.add_argument("option")
    p.add_argument("-d", "--detailed", action="store_true", help="Show the first matching responses")
    p.add_argument("--strict", action="store_true", help="Fail if the option was never observed")

    p = sub.add_parser("options", help="List all observed options for a question")
    p.add_argument("question_id")

    p = sub.add_parser("intersect", help="Respondents matching every QID=OPTION pair")
    p.add_argument("pairs", nargs="+", type=_pair, metavar="QID=OPTION")

    p = sub.add_parser("compare", help="Compare a question's distribution across two groups")
    p.add_argument("question_id")
    p.add_argument("--group", action="append", type=_pair, required=True, metavar="QID=OPTION")

    p = sub.add_parser("crosstab", help="Co-occurrence counts between two questions")
    p.add_argument("row_question_id")
    p.add_argument("column_question_id")

    p = sub.add_parser("report", help="Generate a markdown analysis report")
    p.add_argument("-o", "--output", default=settings.report_path)

    sub.add_parser("repl", help="Interactive REPL mode")
    return parser


# -------------------------
# Command handlers
# -------------------------
def _cmd_structure(analyzer: SurveyAnalyzer, args: argparse.Namespace) -> List[str]:
    questions = analyzer.search_questions(args.filter) if args.filter else list(analyzer.list_questions())
    if args.limit is not None:
        questions = questions[: args.limit]
    return format_structure(questions, analyzer.respondent_count)


def _cmd_search(analyzer: SurveyAnalyzer, args: argparse.Namespace) -> List[str]:
    if args.options:
        hits = analyzer.search_options(args.term, regex=args.regex)
        return [f"Found {len(hits)} option(s) containing '{args.term}':", *format_option_hits(hits)]
    results = analyzer.search_questions(args.term, regex=args.regex, include_ids=args.ids)
    if not results:
        return [f"No questions found matching '{args.term}'"]
    lines = [f"Found {len(results)} question(s) matching '{args.term}':"]
    lines.extend(format_question(q, i) for i, q in enumerate(results, start=1))
    return lines


def _cmd_distribution(analyzer: SurveyAnalyzer, args: argparse.Namespace) -> List[str]:
    result = analyzer.get_distribution(args.question_id)
    lines = [result.display()]
    if args.threshold > 0.0:
        lines.extend(format_threshold(result, args.threshold))
    if args.chart:
        path = plot_distribution(result, args.chart, top_k=args.top_k)
        lines.append(f"Chart saved to {path}")
    return lines


def _cmd_subset(analyzer: SurveyAnalyzer, args: argparse.Namespace) -> List[str]:
    subset = analyzer.create_subset(args.question_id, args.option, strict=args.strict)
    lines = [subset.display()]
    if args.detailed and subset.size():
        lines.append("\nDetailed responses:")
        for rid in subset.respondent_ids[:DETAILED_LIMIT]:
            lines.append(f"\n--- Respondent {rid} ---")
            for key, value in analyzer.respondent(rid).items():
                if not is_missing(value):
                    lines.append(f"{key}: {value}")
        if subset.size() > DETAILED_LIMIT:
            lines.append(f"\n... and {subset.size() - DETAILED_LIMIT} more responses")
    return lines


def _cmd_options(analyzer: SurveyAnalyzer, args: argparse.Namespace) -> List[str]:
    question = analyzer.get_question(args.question_id)
    return format_options(question, analyzer.question_options(args.question_id))


def _cmd_intersect(analyzer: SurveyAnalyzer, args: argparse.Namespace) -> List[str]:
    groups = [analyzer.create_subset(qid, option) for qid, option in args.pairs]
    survivors = analyzer.intersect_all(*groups)
    return format_intersection(groups, survivors, analyzer.respondent_count)


def _cmd_compare(analyzer: SurveyAnalyzer, args: argparse.Namespace) -> List[str]:
    if len(args.group) != 2:
        raise ValueError("compare needs exactly two --group QID=OPTION arguments")
    (qa, oa), (qb, ob) = args.group
    group_a = analyzer.create_subset(qa, oa)
    group_b = analyzer.create_subset(qb, ob)
    dist_a, dist_b = analyzer.compare(args.question_id, group_a, group_b)
    return format_comparison(f"{qa}='{oa}'", dist_a, f"{qb}='{ob}'", dist_b)


def _cmd_crosstab(analyzer: SurveyAnalyzer, args: argparse.Namespace) -> List[str]:
    table = analyzer.crosstab(args.row_question_id, args.column_question_id)
    if table.empty:
        return ["No respondents answered both questions."]
    with pd.option_context("display.max_rows", 200, "display.max_columns", 50, "display.width", 200):
        return [table.to_string()]


def _cmd_report(analyzer: SurveyAnalyzer, args: argparse.Namespace) -> List[str]:
    path = write_report(build_report(analyzer), args.output)
    return [f"Report saved as: {path}"]


COMMANDS = {
    "structure": _cmd_structure,
    "search": _cmd_search,
    "distribution": _cmd_distribution,
    "subset": _cmd_subset,
    "options": _cmd_options,
    "intersect": _cmd_intersect,
    "compare": _cmd_compare,
    "crosstab": _cmd_crosstab,
    "report": _cmd_report,
}


def main(argv: Optional[Sequence[str]] = None) -> int:
    settings = Settings.from_env()
    args = build_parser(settings).parse_args(argv)

    setup_logging(args.log_level, json_logs=args.json_logs)
    set_command(args.command)
    try:
        logger.info("Loading survey data from %s", args.file)
        analyzer = SurveyAnalyzer.from_file(
            args.file,
            schema_sheet=args.schema_sheet,
            data_sheet=args.data_sheet,
            kind_overrides=settings.kind_overrides,
        )

        if args.command == "repl":
            SurveyRepl(analyzer).run()
            return 0

        for line in COMMANDS[args.command](analyzer, args):
            print(line)
        return 0
    except (AppError, ValueError) as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        clear_command()


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
