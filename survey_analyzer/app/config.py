from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, Optional

from dotenv import load_dotenv


def _env_str(key: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(key)
    if v is None:
        return default
    v = v.strip()
    return v if v else default


def _env_int(key: str, default: int) -> int:
    v = _env_str(key)
    if v is None:
        return default
    try:
        return int(v)
    except ValueError:
        return default


def _env_bool(key: str, default: bool) -> bool:
    v = _env_str(key)
    if v is None:
        return default
    return v.lower() in {"1", "true", "yes", "y", "on"}


def parse_kind_overrides(raw: Optional[str]) -> Dict[str, str]:
    """
    Parse "Q1=MC, Q7=TE" into {"Q1": "MC", "Q7": "TE"}.

    Malformed pairs are skipped; kind names are resolved later by the loader.
    """
    out: Dict[str, str] = {}
    if not raw:
        return out
    for pair in raw.split(","):
        if "=" not in pair:
            continue
        key, _, value = pair.partition("=")
        key, value = key.strip(), value.strip()
        if key and value:
            out[key] = value
    return out


@dataclass(frozen=True)
class Settings:
    # Source workbook
    data_file: str
    schema_sheet: str
    data_sheet: str

    # Per-question kind overrides (question id -> kind name)
    kind_overrides: Dict[str, str] = field(default_factory=dict)

    # Outputs
    report_path: str = "survey_analysis_report.md"
    chart_top_k: int = 15

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    @staticmethod
    def from_env() -> "Settings":
        # Read configuration from environment variables (and a local .env, if any).
        load_dotenv()

        return Settings(
            data_file=_env_str("SURVEY_DATA_FILE", "so_2024_raw.xlsx") or "so_2024_raw.xlsx",
            schema_sheet=_env_str("SURVEY_SCHEMA_SHEET", "schema") or "schema",
            data_sheet=_env_str("SURVEY_DATA_SHEET", "raw data") or "raw data",

            kind_overrides=parse_kind_overrides(_env_str("SURVEY_KIND_OVERRIDES")),

            report_path=_env_str("SURVEY_REPORT_PATH", "survey_analysis_report.md") or "survey_analysis_report.md",
            chart_top_k=_env_int("SURVEY_CHART_TOP_K", 15),

            log_level=_env_str("SURVEY_LOG_LEVEL", "INFO") or "INFO",
            log_json=_env_bool("SURVEY_LOG_JSON", False),
        )
