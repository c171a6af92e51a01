# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Validation results and the summary printed after a validation run.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from acp.cli.output import BLUE, BOLD, GREEN, Output, RED, YELLOW


class CheckStatus(str, Enum):
    """Outcome of a single check"""
    PASS = "pass"
    FAIL = "fail"
    WARN = "warn"
    INFO = "info"


@dataclass
class CheckResult:
    """One recorded check"""
    section: str
    status: CheckStatus
    message: str


@dataclass(frozen=True)
class ValidationFailure:
    """A failed or warning check, as listed in the summary"""
    section: str
    message: str
    critical: bool


@dataclass
class Remediation:
    title: str
    commands: List[str]


@dataclass
class ValidationReport:
    """Accumulates check results; nothing in here raises"""
    level: str
    results: List[CheckResult] = field(default_factory=list)
    critical_fixes: List[Remediation] = field(default_factory=list)
    warning_fixes: List[Remediation] = field(default_factory=list)

    def add(self, section: str, status: CheckStatus, message: str) -> CheckResult:
        result = CheckResult(section=section, status=status, message=message)
        self.results.append(result)
        return result

    def _count(self, status: CheckStatus) -> int:
        return sum(1 for result in self.results if result.status == status)

    @property
    def passed(self) -> int:
        return self._count(CheckStatus.PASS)

    @property
    def failed(self) -> int:
        return self._count(CheckStatus.FAIL)

    @property
    def warnings(self) -> int:
        return self._count(CheckStatus.WARN)

    @property
    def total(self) -> int:
        """Info results are not counted as checks."""
        return self.passed + self.failed + self.warnings

    @property
    def percentage(self) -> Optional[int]:
        if self.total == 0:
            return None
        return self.passed * 100 // self.total

    @property
    def failures(self) -> List[ValidationFailure]:
        return [
            ValidationFailure(result.section, result.message, result.status == CheckStatus.FAIL)
            for result in self.results
            if result.status in (CheckStatus.FAIL, CheckStatus.WARN)
        ]

    def messages(self, status: CheckStatus) -> List[str]:
        return [result.message for result in self.results if result.status == status]

    def has(self, message: str) -> bool:
        return any(result.message == message for result in self.results)

    @property
    def exit_code(self) -> int:
        """1 with any failure, 2 with warnings only, else 0."""
        if self.failed:
            return 1
        if self.warnings:
            return 2
        return 0

    def render(self, out: Output, verbose: bool = False) -> None:
        """Print summary, remediation steps and next steps."""
        out.header("📊 Validation Summary")

        out.line(f"{out.paint('Validation Level:', BOLD)} {self.level}")
        out.line(f"{out.paint('Total Checks:', BOLD)} {self.total}")
        out.line(f"{out.paint('Passed:', GREEN)} {self.passed}")
        out.line(f"{out.paint('Failed:', RED)} {self.failed}")
        out.line(f"{out.paint('Warnings:', YELLOW)} {self.warnings}")
        if self.percentage is not None:
            out.line(f"{out.paint('Success Rate:', BOLD)} {self.percentage}%")

        _bullets(out, "❌ Critical Issues:", RED, self.messages(CheckStatus.FAIL))
        _bullets(out, "⚠️  Warnings:", YELLOW, self.messages(CheckStatus.WARN))
        if verbose:
            _bullets(out, "ℹ️  Information:", BLUE, self.messages(CheckStatus.INFO))

        if self.failed or self.warnings:
            out.header("🔧 Remediation Steps")
            if self.failed:
                out.line(out.paint("Critical issues must be fixed:", RED))
                out.line()
                _steps(out, self.critical_fixes)
            if self.warnings:
                out.line(out.paint("Warnings should be addressed:", YELLOW))
                out.line()
                _steps(out, self.warning_fixes)

        out.header("🎯 Next Steps")
        for text in self.next_steps():
            out.line(text)
        out.line()

    def next_steps(self) -> Tuple[str, ...]:
        if self.failed:
            return (
                "❌ Project validation failed!",
                "",
                "Critical issues must be fixed before deployment.",
                "",
                "Next steps:",
                "  • Review errors listed above",
                "  • Follow remediation steps",
                "  • Run validation again: acp validate",
            )
        if self.warnings:
            return (
                "✅ Project validation passed!",
                "",
                "Your project passed validation with warnings.",
                "Address warnings before deploying to production.",
                "",
                "Next steps:",
                "  • Fix warnings listed above",
                "  • Run validation again: acp validate",
            )
        return (
            "✅ Project validation passed!",
            "",
            "Your project is fully validated and ready for:",
            "  • Development: npm run dev",
            "  • Testing: npm test",
        )


def _bullets(out: Output, title: str, code: str, messages: List[str]) -> None:
    if not messages:
        return
    out.line()
    out.line(out.paint(title, code))
    for message in messages:
        out.line(f"  {out.paint('•', code)} {message}")


def _steps(out: Output, fixes: List[Remediation]) -> None:
    for number, fix in enumerate(fixes, start=1):
        out.line(out.paint(f"{number}. {fix.title}:", BOLD))
        for command in fix.commands:
            out.line(f"   {command}")
        out.line()
