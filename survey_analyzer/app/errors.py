from __future__ import annotations

from typing import Optional


class AppError(Exception):
    # Base class for domain errors (intended, meaningful failures).
    pass


class QuestionNotFound(AppError):
    # Raised when a question id is not present in the registry.
    def __init__(self, question_id: str):
        self.question_id = question_id
        super().__init__(f"Question not found with ID: {question_id}")


class InvalidQuestionType(AppError):
    # Raised when an operation is requested on a question kind it does not support.
    def __init__(self, question_id: str, kind: object):
        self.question_id = question_id
        self.kind = kind
        super().__init__(f"Invalid question type for operation: {question_id} ({kind})")


class OptionNotFound(AppError):
    # Raised only by strict callers when an option was never observed for a question.
    def __init__(self, question_id: str, option: str):
        self.question_id = question_id
        self.option = option
        super().__init__(f"Option not found for {question_id}: {option!r}")


class EmptyDataset(AppError):
    # Raised when a load produced zero respondents.
    def __init__(self, source: Optional[str] = None):
        self.source = source
        msg = "Empty dataset"
        if source:
            msg += f": {source}"
        super().__init__(msg)


class LoadError(AppError):
    # Raised for loader failures (unreadable file, I/O problems, engine errors).
    pass


class ParsingError(LoadError):
    # Raised when a required sheet or header row is missing from the source.
    pass
