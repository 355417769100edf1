"""Configuration management using pydantic-settings."""

import tomllib
from datetime import date
from pathlib import Path
from typing import Self

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_LEDGER = "~/.local/share/bankfeed/ledger.yaml"
DEFAULT_MAX_UPLOAD_BYTES = 5 * 1024 * 1024
DEFAULT_STATEMENT_DATE = date(2025, 6, 30)
CONFIG_PATH = Path("~/.config/bankfeed/config.toml").expanduser()


class ExtractionConfig(BaseSettings):
    """Quality thresholds for the text-layer vs OCR decision.

    The defaults were tuned on a small set of South African bank statements
    and should be recalibrated against a labelled corpus.
    """

    short_line_length: int = 10
    image_based_ratio: float = 0.8
    fragmented_ratio: float = 0.6
    min_amount_hits: int = 5
    min_financial_terms: int = 3
    reconstruction_keep_ratio: float = 0.5
    long_fragment_length: int = 80
    time_budget_seconds: float = 240.0

    @model_validator(mode="after")
    def check_ratios(self) -> Self:
        if not 0 <= self.fragmented_ratio <= self.image_based_ratio <= 1:
            raise ValueError(
                "ratios must satisfy 0 <= fragmented_ratio <= image_based_ratio <= 1"
            )
        return self


class OcrConfig(BaseSettings):
    """OCR engine and external rasterizer settings."""

    dpi: int = 200
    min_line_length: int = 3
    language: str = "eng"
    tesseract_cmd: str | None = None
    external_command: str = "pdftoppm"
    external_format: str = "jpeg"
    external_timeout_seconds: float = 60.0

    @field_validator("external_format")
    @classmethod
    def check_format(cls, v: str) -> str:
        if v not in ("jpeg", "png"):
            raise ValueError(f"unsupported raster format: {v}")
        return v


class IngestConfig(BaseSettings):
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    fallback_statement_date: date = DEFAULT_STATEMENT_DATE


class LedgerConfig(BaseSettings):
    path: Path = Path(DEFAULT_LEDGER).expanduser()

    @field_validator("path", mode="before")
    @classmethod
    def expand_path(cls, v: str | Path) -> Path:
        return Path(v).expanduser()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="BANKFEED_")

    extraction: ExtractionConfig = ExtractionConfig()
    ocr: OcrConfig = OcrConfig()
    ingest: IngestConfig = IngestConfig()
    ledger: LedgerConfig = LedgerConfig()

    @model_validator(mode="after")
    def ensure_dirs(self) -> Self:
        self.ledger.path.parent.mkdir(parents=True, exist_ok=True)
        return self


def load_settings(config_path: Path | None = None) -> Settings:
    """Load settings from TOML file, falling back to defaults."""
    path = config_path or CONFIG_PATH

    if path.exists():
        with open(path, "rb") as f:
            data = tomllib.load(f)

        extraction = ExtractionConfig(**data.get("extraction", {}))
        ocr = OcrConfig(**data.get("ocr", {}))
        ingest = IngestConfig(**data.get("ingest", {}))
        ledger = LedgerConfig(**data.get("ledger", {}))
        return Settings(extraction=extraction, ocr=ocr, ingest=ingest, ledger=ledger)

    return Settings()
