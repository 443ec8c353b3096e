"""YAML loader and report registry for SeriesForge.

report definitions live in yaml next to the code that runs them, so a new
breakdown is a reviewed diff rather than a pile of cli flags in someone's
shell history.
"""

import logging
from pathlib import Path
from typing import Any

import yaml

from seriesforge.models.report import ReportDefinition

logger = logging.getLogger(__name__)


class ReportRegistry:
    """All report definitions found in a directory of yaml files."""

    def __init__(self) -> None:
        self.reports: dict[str, ReportDefinition] = {}

    def load_directory(self, path: Path) -> None:
        """Load every .yaml/.yml file under a directory, recursively."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Reports directory not found: {path}")

        yaml_files = sorted(list(path.glob("**/*.yaml")) + list(path.glob("**/*.yml")))
        if not yaml_files:
            raise ValueError(f"No YAML files found in {path}")

        for yaml_file in yaml_files:
            self._load_file(yaml_file)
        logger.debug("Loaded %d report(s) from %d file(s)", len(self.reports), len(yaml_files))

    def _load_file(self, path: Path) -> None:
        """Parse one file. empty files are skipped."""
        with open(path) as f:
            data = yaml.safe_load(f)

        if data is None:
            return

        for report_data in data.get("reports", []):
            self.add_report(self._parse_report(report_data))

    def _parse_report(self, data: dict[str, Any]) -> ReportDefinition:
        # yaml turns `sort: ga:visits` into a plain string, accept both
        if isinstance(data.get("sort"), str):
            data = {**data, "sort": [s.strip() for s in data["sort"].split(",") if s.strip()]}
        return ReportDefinition.model_validate(data)

    def add_report(self, report: ReportDefinition) -> None:
        if report.name in self.reports:
            raise ValueError(f"Duplicate report: {report.name}")
        self.reports[report.name] = report

    def get_report(self, name: str) -> ReportDefinition:
        """Get a report by name."""
        if name not in self.reports:
            raise KeyError(f"Unknown report: {name}")
        return self.reports[name]

    def list_reports(self) -> list[ReportDefinition]:
        return sorted(self.reports.values(), key=lambda r: r.name)
