from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Mapping, Optional, Sequence, Tuple, Union

import pandas as pd

from survey_analyzer.data.dataset import SurveyDataset
from survey_analyzer.data.importer import SurveyImporter
from survey_analyzer.data.models import Question, QuestionKind
from survey_analyzer.data.responses import AnswerRecord
from survey_analyzer.tools import search, stats, subsets
from survey_analyzer.tools.stats import DistributionResult
from survey_analyzer.tools.subsets import SubsetResult

logger = logging.getLogger(__name__)


class SurveyAnalyzer:
    """
    Read-only query surface over a loaded :class:`SurveyDataset`.

    Every method is a pure read of the snapshot, so one analyzer can serve
    concurrent callers.
    """

    def __init__(self, dataset: SurveyDataset):
        self.dataset = dataset

    @classmethod
    def from_file(
        cls,
        file_path: Union[str, Path],
        schema_sheet: str = "schema",
        data_sheet: str = "raw data",
        kind_overrides: Optional[Mapping[str, Union[QuestionKind, str]]] = None,
    ) -> "SurveyAnalyzer":
        importer = SurveyImporter(
            schema_sheet=schema_sheet,
            data_sheet=data_sheet,
            kind_overrides=kind_overrides,
        )
        return cls(importer.load(file_path))

    @property
    def respondent_count(self) -> int:
        return self.dataset.respondent_count

    # -------------------------
    # Questions + search
    # -------------------------
    def list_questions(self) -> Tuple[Question, ...]:
        return self.dataset.questions.all()

    def get_question(self, question_id: str) -> Question:
        return self.dataset.questions.lookup(question_id)

    def search_questions(self, term: str, regex: bool = False, include_ids: bool = False) -> List[Question]:
        return search.search_questions(self.dataset.questions, term, regex=regex, include_ids=include_ids)

    def search_options(self, term: str, regex: bool = False) -> List[Tuple[str, str]]:
        return search.search_options(self.dataset.questions, term, regex=regex)

    def question_options(self, question_id: str) -> List[str]:
        return stats.question_options(self.dataset, question_id)

    def respondent(self, respondent_id: int) -> AnswerRecord:
        return self.dataset.responses.record(respondent_id)

    # -------------------------
    # Distributions
    # -------------------------
    def get_distribution(
        self,
        question_id: str,
        respondent_ids: Optional[Sequence[int]] = None,
    ) -> DistributionResult:
        logger.debug("Distribution for %s (restricted=%s)", question_id, respondent_ids is not None)
        return stats.compute_distribution(self.dataset, question_id, respondent_ids)

    def compare(
        self,
        question_id: str,
        group_a: SubsetResult,
        group_b: SubsetResult,
    ) -> Tuple[DistributionResult, DistributionResult]:
        # Same question, distribution within each group.
        return (
            self.get_distribution(question_id, group_a.respondent_ids),
            self.get_distribution(question_id, group_b.respondent_ids),
        )

    def crosstab(self, row_question_id: str, column_question_id: str) -> pd.DataFrame:
        return stats.crosstab(self.dataset, row_question_id, column_question_id)

    # -------------------------
    # Subsets
    # -------------------------
    def create_subset(self, question_id: str, option: str, strict: bool = False) -> SubsetResult:
        logger.debug("Subset %s=%r (strict=%s)", question_id, option, strict)
        return subsets.create_subset(self.dataset, question_id, option, strict=strict)

    def intersect(self, a: SubsetResult, b: SubsetResult) -> List[int]:
        return subsets.intersect(a, b)

    def intersect_all(self, *groups: SubsetResult) -> List[int]:
        return subsets.intersect_all(*groups)
