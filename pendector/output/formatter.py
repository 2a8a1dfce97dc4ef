"""Render scan results as text or JSON."""

import json
from typing import List, Optional

from termcolor import colored

from ..core.types import RepositoryReport

PULL_MARKER = "↓"
PUSH_MARKER = "↑"
DIVERGED_MARKER = "↕"


class OutputFormatter:
    """Format repository reports for the terminal or for machines."""

    def __init__(self, verbose: bool = False, format: str = "text", color: Optional[bool] = None):
        """Initialize formatter.

        Args:
            verbose: List changed files and put the path on its own line
            format: "text" or "json"
            color: Force color on or off (None lets termcolor decide from
                the terminal and NO_COLOR/FORCE_COLOR)
        """
        self.verbose = verbose
        self.format = format
        self.color = color

    def format_repositories(self, reports: List[RepositoryReport]) -> str:
        """Render all reports.

        Args:
            reports: Scan results, in any order

        Returns:
            Rendered output
        """
        ordered = sorted(reports, key=lambda r: r.path)
        if self.format == "json":
            return self.format_json(ordered)
        return self.format_text(ordered)

    def format_json(self, reports: List[RepositoryReport]) -> str:
        return json.dumps([r.to_dict() for r in reports], indent=2, ensure_ascii=False) + "\n"

    def format_text(self, reports: List[RepositoryReport]) -> str:
        if not reports:
            return "No repositories found."

        total_count = len(reports)
        changed_count = sum(1 for r in reports if r.has_changes)

        output = f"Found {total_count} repositories"
        if changed_count > 0:
            output += f" ({changed_count} with changes)"
        output += ":\n\n"

        for report in reports:
            output += self.format_repository(report) + "\n"

        return output

    def format_repository(self, report: RepositoryReport) -> str:
        """Render a single repository.

        Args:
            report: Repository report

        Returns:
            One line, or several in verbose mode
        """
        name = self._paint(report.name, "red" if report.has_changes else "green")
        branch = report.current_branch or "unknown"
        files_count = len(report.changed_files)

        summary = f"{name} [{branch}] ({files_count} changed files)"
        sync = self.format_sync(report)
        if sync:
            summary += f" {sync}"

        if not self.verbose:
            return f"{summary} - {report.path}"

        lines = [summary, f"  Path: {report.path}"]
        if report.changed_files:
            lines.append("  Changed files:")
            for changed in report.changed_files:
                lines.append(f"    {changed.kind.marker} {changed.path}")
        return "\n".join(lines)

    def format_sync(self, report: RepositoryReport) -> str:
        """Describe the remote relationship, empty when in sync or untracked."""
        if not report.sync.has_remote:
            return ""
        if report.needs_pull and report.needs_push:
            return self._paint(f"{DIVERGED_MARKER} {report.remote_branch}", "magenta")
        if report.needs_pull:
            return self._paint(f"{PULL_MARKER} {report.remote_branch}", "yellow")
        if report.needs_push:
            return self._paint(f"{PUSH_MARKER} {report.remote_branch}", "cyan")
        return ""

    def _paint(self, text: str, color: str) -> str:
        if self.color is None:
            return colored(text, color)
        if self.color:
            return colored(text, color, force_color=True)
        return text
