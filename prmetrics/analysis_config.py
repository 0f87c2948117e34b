"""Analysis configuration loaded from prmetrics.yaml.

Example:

    repo:
      owner: my-org
      name: my-repo
    analysis:
      reviewer: coderabbitai[bot]
      days: 30            # or start_date / end_date (YYYY-MM-DD)
    output:
      format: both        # json | markdown | both
      dir: ./reports

Environment variables (see ``config``) override file values; CLI flags
override both.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import yaml

from . import config as env
from .models import DateRange

CONFIG_CANDIDATES = ["prmetrics.yaml", ".prmetrics.yaml", "prmetrics.yml", ".prmetrics.yml"]
DEFAULT_REVIEWER = "coderabbitai[bot]"
DEFAULT_DAYS = 30
OUTPUT_FORMATS = ("json", "markdown", "both")


@dataclass
class ValidationError:
    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


class ConfigurationError(ValueError):
    """Raised when configuration fails validation."""

    def __init__(self, message: str, errors: list[ValidationError] | None = None):
        self.errors = errors or []
        if self.errors:
            message = f"{message}: " + "; ".join(str(e) for e in self.errors)
        super().__init__(message)


def parse_date(value: str | None) -> datetime | None:
    """Parse YYYY-MM-DD (or full ISO) into an aware UTC datetime."""
    if not value:
        return None
    parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


@dataclass
class AnalysisConfig:
    """What to analyse and where to write the reports."""

    repo_owner: str | None = None
    repo_name: str | None = None
    reviewer: str = DEFAULT_REVIEWER
    days: int | None = DEFAULT_DAYS
    start_date: str | None = None
    end_date: str | None = None
    output_format: str = "json"
    output_dir: str = "./reports"

    @classmethod
    def load(cls, path: Path | str | None = None) -> AnalysisConfig:
        """Load config from YAML file or return defaults."""
        if path is None:
            for candidate in CONFIG_CANDIDATES:
                if Path(candidate).exists():
                    path = candidate
                    break

        if path is None or not Path(path).exists():
            return cls.default()

        with open(path) as f:
            data = yaml.safe_load(f)

        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AnalysisConfig:
        """Create config from dictionary (e.g., parsed YAML)."""
        repo = data.get("repo") or {}
        analysis = data.get("analysis") or {}
        output = data.get("output") or {}

        start_date = analysis.get("start_date")
        end_date = analysis.get("end_date")
        # An explicit range wins over the rolling window
        days = None if start_date and end_date else analysis.get("days", DEFAULT_DAYS)

        return cls(
            repo_owner=repo.get("owner"),
            repo_name=repo.get("name"),
            reviewer=analysis.get("reviewer", DEFAULT_REVIEWER),
            days=days,
            start_date=str(start_date) if start_date else None,
            end_date=str(end_date) if end_date else None,
            output_format=output.get("format", "json"),
            output_dir=output.get("dir", "./reports"),
        )

    @classmethod
    def default(cls) -> AnalysisConfig:
        return cls()

    def apply_env(self) -> AnalysisConfig:
        """Overlay environment variable overrides in place."""
        if env.REVIEWER_USERNAME:
            self.reviewer = env.REVIEWER_USERNAME
        if env.ANALYSIS_START_DATE and env.ANALYSIS_END_DATE:
            self.start_date = env.ANALYSIS_START_DATE
            self.end_date = env.ANALYSIS_END_DATE
            self.days = None
        if env.OUTPUT_FORMAT:
            self.output_format = env.OUTPUT_FORMAT
        if env.OUTPUT_DIR:
            self.output_dir = env.OUTPUT_DIR
        return self

    def validate(self) -> list[ValidationError]:
        errors: list[ValidationError] = []

        if not self.reviewer or not self.reviewer.strip():
            errors.append(ValidationError("analysis.reviewer", "Reviewer username is required"))

        if self.output_format not in OUTPUT_FORMATS:
            errors.append(
                ValidationError("output.format", f"Output format must be one of {', '.join(OUTPUT_FORMATS)}")
            )

        if bool(self.start_date) != bool(self.end_date):
            errors.append(
                ValidationError("analysis.period", "Provide both start_date and end_date, or neither")
            )
        elif self.start_date and self.end_date:
            try:
                start, end = parse_date(self.start_date), parse_date(self.end_date)
            except ValueError:
                errors.append(ValidationError("analysis.period", "Invalid date format. Use YYYY-MM-DD"))
            else:
                if start >= end:
                    errors.append(ValidationError("analysis.period", "Start date must be before end date"))
        elif self.days is None or self.days <= 0:
            errors.append(ValidationError("analysis.days", "Days must be a positive number"))

        return errors

    def check(self) -> AnalysisConfig:
        """Raise ConfigurationError if validation fails."""
        errors = self.validate()
        if errors:
            raise ConfigurationError("Configuration validation failed", errors)
        return self

    def resolve_period(self, now: datetime | None = None) -> DateRange:
        """The analysis window: explicit dates or the last ``days`` days."""
        if self.start_date and self.end_date:
            return DateRange(start=parse_date(self.start_date), end=parse_date(self.end_date))

        end = now or datetime.now(UTC)
        return DateRange(start=end - timedelta(days=self.days or DEFAULT_DAYS), end=end)

    def to_yaml(self) -> str:
        """Serialize config to YAML."""
        analysis: dict[str, Any] = {"reviewer": self.reviewer}
        if self.start_date and self.end_date:
            analysis["start_date"] = self.start_date
            analysis["end_date"] = self.end_date
        else:
            analysis["days"] = self.days

        data: dict[str, Any] = {}
        if self.repo_owner and self.repo_name:
            data["repo"] = {"owner": self.repo_owner, "name": self.repo_name}
        data["analysis"] = analysis
        data["output"] = {"format": self.output_format, "dir": self.output_dir}

        return yaml.dump(data, default_flow_style=False, sort_keys=False)
