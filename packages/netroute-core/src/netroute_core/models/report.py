from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Severity = Literal["FAIL", "WARN", "INFO"]


class Finding(BaseModel):
    """A single validation finding with severity, code, message, and context."""

    model_config = ConfigDict(extra="ignore")
    severity: Severity
    code: str
    message: str
    context: dict = Field(default_factory=dict)


class Report(BaseModel):
    """Complete validation report with summary and findings."""

    model_config = ConfigDict(extra="ignore")
    summary: dict
    findings: list[Finding]

    @classmethod
    def from_findings(cls, findings: list[Finding]) -> "Report":
        summary = {"fail": 0, "warn": 0, "info": 0}
        for finding in findings:
            summary[finding.severity.lower()] += 1
        summary["pass"] = 1 if summary["fail"] == 0 else 0
        return cls(summary=summary, findings=findings)

    @property
    def failed(self) -> bool:
        return self.summary.get("fail", 0) > 0

    def by_severity(self, severity: Severity) -> list[Finding]:
        return [f for f in self.findings if f.severity == severity]
