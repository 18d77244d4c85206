# survey_analyzer/data/importer.py
from __future__ import annotations

import datetime as _dt
import logging
import math
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import pandas as pd

from .dataset import SurveyDataset
from .models import Question, QuestionKind, infer_kind
from survey_analyzer.app.errors import EmptyDataset, LoadError, ParsingError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

_ID_HEADERS = ("column", "id", "qname", "question_id", "name")
_TEXT_HEADERS = ("question_text", "question", "label", "text", "questiontext")
_KIND_HEADERS = ("type", "kind", "question_type")


def _cell_to_str(v: Any) -> Optional[str]:
    """
    Normalize one spreadsheet cell to the stored raw string.

    NaN/None/blank -> None (absent answer). Integral floats lose their ".0"
    so numeric cells read back the way they were typed.
    """
    if v is None:
        return None
    if isinstance(v, float):
        if math.isnan(v):
            return None
        if v.is_integer():
            return str(int(v))
        return str(v)
    if isinstance(v, (pd.Timestamp, _dt.datetime, _dt.date)):
        return v.isoformat()
    s = str(v).strip()
    return s if s else None


def _pick_column(df: pd.DataFrame, candidates: Sequence[str]) -> Optional[str]:
    lower = {str(c).strip().lower(): c for c in df.columns}
    for cand in candidates:
        if cand in lower:
            return lower[cand]
    return None


class SurveyImporter:
    """
    Loads a survey workbook into a :class:`SurveyDataset`.

    Supported layouts:
      - two sheets: a schema sheet (column id, question text, type code) and a
        data sheet whose header row holds the column ids;
      - a single data sheet (or CSV) whose header row holds the question text;
        kinds are then inferred from the header.
    """

    def __init__(
        self,
        schema_sheet: str = "schema",
        data_sheet: str = "raw data",
        kind_overrides: Optional[Mapping[str, Union[QuestionKind, str]]] = None,
        kind_inference: Callable[[str], QuestionKind] = infer_kind,
    ):
        self.schema_sheet = schema_sheet
        self.data_sheet = data_sheet
        self.kind_overrides = self._resolve_overrides(kind_overrides or {})
        self.kind_inference = kind_inference

    # -------------------------
    # Entry points
    # -------------------------
    def load(self, file_path: PathLike) -> SurveyDataset:
        suffix = Path(file_path).suffix.lower()
        if suffix in {".csv", ".txt"}:
            return self.import_csv(file_path)
        return self.import_excel(file_path)

    def import_excel(self, file_path: PathLike) -> SurveyDataset:
        try:
            with pd.ExcelFile(file_path) as xls:
                sheet_names = list(xls.sheet_names)
                logger.info("Workbook %s sheets: %s", file_path, sheet_names)
                schema_df, data_df = self._read_sheets(xls, sheet_names)
        except (ParsingError, EmptyDataset):
            raise
        except Exception as e:
            raise LoadError(f"Failed to read Excel: {e}") from e

        return self._import_dataframe(data_df, schema_df=schema_df, source_hint=str(file_path))

    def import_csv(self, file_path: PathLike, encoding: Optional[str] = None) -> SurveyDataset:
        try:
            df = pd.read_csv(file_path, dtype=str, keep_default_na=False, encoding=encoding)
        except pd.errors.EmptyDataError as e:
            raise ParsingError(f"No header row found in {file_path}") from e
        except Exception as e:
            raise LoadError(f"Failed to read CSV: {e}") from e

        return self._import_dataframe(df, schema_df=None, source_hint=str(file_path))

    # -------------------------
    # Sheet selection
    # -------------------------
    def _read_sheets(
        self, xls: pd.ExcelFile, sheet_names: List[str]
    ) -> Tuple[Optional[pd.DataFrame], pd.DataFrame]:
        if not sheet_names:
            raise ParsingError("No worksheets found")

        if self.schema_sheet in sheet_names:
            if self.data_sheet not in sheet_names:
                raise ParsingError(
                    f"Workbook has a '{self.schema_sheet}' sheet but no '{self.data_sheet}' sheet"
                )
            schema_df = xls.parse(self.schema_sheet, keep_default_na=False)
            data_df = xls.parse(self.data_sheet, keep_default_na=False)
            return schema_df, data_df

        sheet = self.data_sheet if self.data_sheet in sheet_names else sheet_names[0]
        if sheet != self.data_sheet:
            logger.warning(
                "Sheet '%s' not found; using first sheet '%s' with inferred question kinds.",
                self.data_sheet,
                sheet,
            )
        return None, xls.parse(sheet, keep_default_na=False)

    # -------------------------
    # Normalization
    # -------------------------
    def _import_dataframe(
        self,
        df: pd.DataFrame,
        schema_df: Optional[pd.DataFrame],
        source_hint: str,
    ) -> SurveyDataset:
        headers = [str(c).strip() for c in df.columns]
        if not headers:
            raise ParsingError(f"No header row found in raw data ({source_hint})")
        if len(set(headers)) != len(headers):
            dupes = sorted({h for h in headers if headers.count(h) > 1})
            raise ParsingError(f"Duplicate column headers after trimming: {dupes} ({source_hint})")
        if df.empty:
            raise EmptyDataset(source_hint)
        df = df.copy()
        df.columns = headers

        if schema_df is not None:
            questions = self._questions_from_schema(schema_df)
        else:
            questions = self._questions_from_headers(headers)

        question_ids = [q.id for q in questions]
        known = set(question_ids)

        missing_cols = [qid for qid in question_ids if qid not in set(headers)]
        if missing_cols:
            logger.warning("Schema questions without a data column: %s", missing_cols)
        extra_cols = [h for h in headers if h not in known]
        if extra_cols:
            logger.info("Ignoring %d data columns not described by the schema.", len(extra_cols))

        # Every data row is a respondent, even one with no answer to any question.
        columns = [h for h in headers if h in known]
        rows = df[columns].itertuples(index=False, name=None) if columns else (() for _ in range(len(df)))
        records: List[Dict[str, str]] = []
        for row in rows:
            record: Dict[str, str] = {}
            for col, cell in zip(columns, row):
                value = _cell_to_str(cell)
                if value is not None:
                    record[col] = value
            records.append(record)

        unanswered = sum(1 for r in records if not r)
        if unanswered:
            logger.info("%d respondents in %s answered none of the questions.", unanswered, source_hint)

        dataset = SurveyDataset.build(
            questions=questions,
            records=records,
            kind_overrides=self.kind_overrides,
            source=source_hint,
        )
        logger.info(
            "Loaded %d questions and %d respondents from %s.",
            dataset.question_count,
            dataset.respondent_count,
            source_hint,
        )
        return dataset

    def _questions_from_schema(self, schema_df: pd.DataFrame) -> List[Question]:
        if schema_df.shape[1] < 2:
            raise ParsingError("Schema sheet needs at least a column id and a question text column")

        id_col = _pick_column(schema_df, _ID_HEADERS) or schema_df.columns[0]
        text_col = _pick_column(schema_df, _TEXT_HEADERS) or schema_df.columns[1]
        kind_col = _pick_column(schema_df, _KIND_HEADERS)
        if kind_col is None and schema_df.shape[1] >= 3:
            kind_col = schema_df.columns[2]

        questions: List[Question] = []
        seen = set()
        for position, row in enumerate(schema_df.to_dict(orient="records")):
            qid = _cell_to_str(row.get(id_col))
            if qid is None:
                continue
            if qid in seen:
                logger.warning("Duplicate schema entry for %s ignored.", qid)
                continue
            seen.add(qid)

            label = _cell_to_str(row.get(text_col)) or qid
            declared = QuestionKind.parse(row.get(kind_col)) if kind_col is not None else None
            kind = declared or self.kind_inference(label)
            if declared is None:
                logger.debug("Inferred kind for %s: %s", qid, kind.value)
            questions.append(Question(id=qid, label=label, kind=kind, position=position))

        if not questions:
            raise ParsingError("Schema sheet contains no question rows")
        return questions

    def _questions_from_headers(self, headers: Sequence[str]) -> List[Question]:
        questions: List[Question] = []
        for position, header in enumerate(headers):
            kind = self.kind_inference(header)
            logger.debug("Inferred kind for %s: %s", header, kind.value)
            questions.append(Question(id=header, label=header, kind=kind, position=position))
        return questions

    @staticmethod
    def _resolve_overrides(raw: Mapping[str, Union[QuestionKind, str]]) -> Dict[str, QuestionKind]:
        out: Dict[str, QuestionKind] = {}
        for qid, value in raw.items():
            kind = value if isinstance(value, QuestionKind) else QuestionKind.parse(value)
            if kind is None:
                raise ValueError(f"Unknown question kind for {qid}: {value!r}")
            out[qid] = kind
        return out


def load_survey(
    file_path: PathLike,
    schema_sheet: str = "schema",
    data_sheet: str = "raw data",
    kind_overrides: Optional[Mapping[str, Union[QuestionKind, str]]] = None,
) -> SurveyDataset:
    importer = SurveyImporter(
        schema_sheet=schema_sheet,
        data_sheet=data_sheet,
        kind_overrides=kind_overrides,
    )
    return importer.load(file_path)
