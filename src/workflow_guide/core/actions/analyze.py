"""Analyze action - scan the project and write a role-specific report.

The report is written to ``<step id>-<role id>.md`` in the project root.
"""

from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path

from ..models import ActionKind
from ..roles.base import Role
from ..roles.defaults import ROLE_ANALYSIS_APPROACH, ROLE_INSIGHTS
from .base import ActionHandler, ActionRequest, StepResult

SKIP_DIRS = {".git", ".hg", ".venv", "venv", "node_modules", "__pycache__", "dist", "build"}
CONFIG_FILES = {
    "pyproject.toml",
    "setup.cfg",
    "setup.py",
    "requirements.txt",
    "tox.ini",
    "package.json",
    "tsconfig.json",
    "biome.json",
    ".eslintrc",
    "Makefile",
    "Dockerfile",
}


def is_test_file(path: Path) -> bool:
    name = path.name
    return (
        name.startswith("test_")
        or path.stem.endswith("_test")
        or ".test." in name
        or ".spec." in name
    )


@dataclass
class ProjectScan:
    """File statistics of a project tree."""

    total_files: int = 0
    directories: list[str] = field(default_factory=list)
    by_suffix: Counter = field(default_factory=Counter)
    test_files: int = 0
    config_files: int = 0

    def findings(self) -> list[str]:
        findings = []
        if self.by_suffix.get(".ts", 0) and self.by_suffix.get(".js", 0):
            findings.append("Mixed TypeScript and JavaScript files detected")
        if self.test_files == 0:
            findings.append("No test files found")
        if self.config_files < 2:
            findings.append("Limited configuration files detected")
        return findings

    def recommendations(self) -> list[str]:
        recommendations = []
        if self.test_files == 0:
            recommendations.append("Consider adding test files for better code coverage")
        if self.by_suffix.get(".ts", 0) and self.by_suffix.get(".js", 0):
            recommendations.append("Consider migrating JavaScript files to TypeScript for better type safety")
        recommendations.append("Ensure proper project structure with clear separation of concerns")
        return recommendations


def scan_project(root: Path) -> ProjectScan:
    """Walk ``root`` skipping hidden, vendored and build directories."""
    scan = ProjectScan()
    if not root.is_dir():
        return scan

    pending = [root]
    while pending:
        current = pending.pop()
        for entry in sorted(current.iterdir()):
            if entry.is_dir():
                if entry.name in SKIP_DIRS or entry.name.startswith("."):
                    continue
                scan.directories.append(str(entry.relative_to(root)))
                pending.append(entry)
            elif entry.is_file():
                scan.total_files += 1
                scan.by_suffix[entry.suffix.lower() or "(none)"] += 1
                if is_test_file(entry):
                    scan.test_files += 1
                if entry.name in CONFIG_FILES:
                    scan.config_files += 1

    scan.directories.sort()
    return scan


def render_report(step_name: str, role: Role, scan: ProjectScan) -> str:
    approach = ROLE_ANALYSIS_APPROACH.get(role.id, "Comprehensive analysis approach")
    insights = ROLE_INSIGHTS.get(role.id, ())

    suffix_lines = [f"- `{suffix}`: {count}" for suffix, count in scan.by_suffix.most_common()]
    dir_lines = [f"- {d}/" for d in scan.directories[:50]]

    sections = [
        f"# {step_name} ({role.display_name})",
        "",
        "## Analysis Approach",
        approach,
        "",
        "## Overview",
        f"- **Total Files**: {scan.total_files}",
        f"- **Directories**: {len(scan.directories)}",
        f"- **Test Files**: {scan.test_files}",
        f"- **Configuration Files**: {scan.config_files}",
        "",
        "## Files by Type",
        "\n".join(suffix_lines) or "No files found.",
        "",
        "## Directory Structure",
        "\n".join(dir_lines) or "No subdirectories.",
        "",
        "## Key Findings",
        "\n".join(f"- {f}" for f in scan.findings()) or "No issues found.",
        "",
        "## Recommendations",
        "\n".join(f"- {r}" for r in scan.recommendations()),
        "",
        "## Role-Specific Insights",
        "\n".join(f"- {i}" for i in insights) or "- No role-specific insights.",
        "",
    ]
    return "\n".join(sections)


class AnalyzeHandler(ActionHandler):
    kind = ActionKind.ANALYZE

    def execute(self, request: ActionRequest) -> StepResult:
        scan = scan_project(request.project_path)
        report = render_report(request.step.name, request.role, scan)
        path = request.project_path / f"{request.step.id}-{request.role.id}.md"
        self.write_file(path, report)

        return self.success(
            request,
            f"Analysis completed ({request.role.display_name} approach). Report saved to: {path}",
            artifact=report,
            artifact_path=str(path),
        )
