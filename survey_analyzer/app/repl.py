from __future__ import annotations

import logging
import shlex
import sys
from typing import Callable, Dict, List, Optional, TextIO, Tuple

from survey_analyzer.app.errors import AppError
from survey_analyzer.app.formatting import (
    format_intersection,
    format_options,
    format_question,
    format_structure,
)
from survey_analyzer.tools.analyzer import SurveyAnalyzer

logger = logging.getLogger(__name__)

Handler = Callable[[List[str]], bool]

HELP_TEXT = """Available commands:
  list [limit]                     - List questions (optionally the first N)
  structure                        - Display survey structure with options
  columns                          - List all question ids
  search <term>                    - Search questions
  searchopt <term>                 - Search answer options
  dist <question_id>               - Show distribution for a question
  subset <question_id> <option>    - Create subset of respondents
  options <question_id>            - Show available options for a question
  intersect <qid=option> <qid=option> [...] - Respondents matching all pairs
  help                             - Show this help
  quit                             - Exit"""


def split_args(line: str) -> List[str]:
    # Quoted options keep their spaces; unbalanced quotes fall back to whitespace.
    try:
        return shlex.split(line)
    except ValueError:
        return line.split()


def parse_pair(token: str) -> Tuple[str, str]:
    qid, sep, option = token.partition("=")
    if not sep or not qid or not option:
        raise ValueError(f"Expected <question_id>=<option>, got {token!r}")
    return qid, option


class SurveyRepl:
    """
    Interactive loop over a loaded analyzer.

    Commands are dispatched through a name -> handler table; a handler returns
    False to stop the loop.
    """

    prompt = "survey> "

    def __init__(
        self,
        analyzer: SurveyAnalyzer,
        out: Optional[TextIO] = None,
        read_line: Callable[[str], str] = input,
    ):
        self.analyzer = analyzer
        self.out = out or sys.stdout
        self.read_line = read_line
        self.handlers: Dict[str, Handler] = {
            "help": self._help,
            "list": self._list,
            "structure": self._structure,
            "columns": self._columns,
            "search": self._search,
            "searchopt": self._search_options,
            "dist": self._distribution,
            "subset": self._subset,
            "options": self._options,
            "intersect": self._intersect,
            "quit": self._quit,
            "exit": self._quit,
        }

    # -------------------------
    # Loop
    # -------------------------
    def run(self) -> None:
        self._emit("Welcome to the Survey Analyzer REPL!")
        self._emit("Type 'help' for available commands, 'quit' to exit\n")
        while True:
            try:
                line = self.read_line(self.prompt)
            except (EOFError, KeyboardInterrupt):
                break
            if not self.execute(line):
                break
        self._emit("Goodbye!")

    def execute(self, line: str) -> bool:
        parts = split_args(line.strip())
        if not parts:
            return True
        command, args = parts[0].lower(), parts[1:]
        handler = self.handlers.get(command)
        if handler is None:
            self._emit(f"Unknown command: '{command}'. Type 'help' for available commands.")
            return True
        try:
            return handler(args)
        except (AppError, ValueError) as e:
            logger.debug("Command %s failed: %s", command, e)
            self._emit(f"Error: {e}")
            return True

    def _emit(self, *lines: str) -> None:
        for line in lines:
            print(line, file=self.out)

    # -------------------------
    # Handlers
    # -------------------------
    def _help(self, args: List[str]) -> bool:
        self._emit(HELP_TEXT)
        return True

    def _quit(self, args: List[str]) -> bool:
        return False

    def _list(self, args: List[str]) -> bool:
        questions = self.analyzer.list_questions()
        limit = len(questions)
        if args:
            try:
                limit = min(int(args[0]), len(questions))
            except ValueError:
                self._emit("Usage: list [limit]")
                return True
        for q in questions[:limit]:
            self._emit(f"{q.id}: {q.label}")
        self._emit(f"({limit} of {len(questions)} questions shown)")
        return True

    def _structure(self, args: List[str]) -> bool:
        self._emit(*format_structure(self.analyzer.list_questions(), self.analyzer.respondent_count))
        return True

    def _columns(self, args: List[str]) -> bool:
        self._emit("Available columns:")
        for i, q in enumerate(self.analyzer.list_questions(), start=1):
            self._emit(f"{i}. {q.id}")
        return True

    def _search(self, args: List[str]) -> bool:
        if not args:
            self._emit("Usage: search <term>")
            return True
        term = " ".join(args)
        results = self.analyzer.search_questions(term)
        if not results:
            self._emit(f"No questions found matching '{term}'")
            return True
        self._emit(f"Found {len(results)} question(s) matching '{term}':")
        for i, q in enumerate(results, start=1):
            self._emit(format_question(q, i))
        return True

    def _search_options(self, args: List[str]) -> bool:
        if not args:
            self._emit("Usage: searchopt <term>")
            return True
        for qid, option in self.analyzer.search_options(" ".join(args)):
            self._emit(f"{qid}: {option}")
        return True

    def _distribution(self, args: List[str]) -> bool:
        if not args:
            self._emit("Usage: dist <question_id>")
            return True
        self._emit(self.analyzer.get_distribution(args[0]).display())
        return True

    def _subset(self, args: List[str]) -> bool:
        if len(args) < 2:
            self._emit("Usage: subset <question_id> <option>")
            return True
        subset = self.analyzer.create_subset(args[0], " ".join(args[1:]))
        self._emit(subset.display())
        return True

    def _options(self, args: List[str]) -> bool:
        if not args:
            self._emit("Usage: options <question_id>")
            return True
        question = self.analyzer.get_question(args[0])
        options = self.analyzer.question_options(args[0])
        self._emit(*format_options(question, options, limit=20))
        return True

    def _intersect(self, args: List[str]) -> bool:
        if len(args) < 2:
            self._emit("Usage: intersect <qid=option> <qid=option> [...]")
            return True
        groups = [self.analyzer.create_subset(*parse_pair(tok)) for tok in args]
        survivors = self.analyzer.intersect_all(*groups)
        self._emit(*format_intersection(groups, survivors, self.analyzer.respondent_count))
        return True
