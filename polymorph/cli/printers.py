"""Report rendering: human-readable text and compact JSON."""
import json
import collections

from typing import List

from polymorph.findings import Category, Finding, Severity
from polymorph.scanner import Scanner
from polymorph.scoring import verdict_for_score


class ReportGenerator:
    """Renders a finished scan. Holds no detection logic."""

    def __init__(self, scanner: Scanner, show_offsets: bool = False):
        self.scanner = scanner
        self.show_offsets = show_offsets

    def get_risk_score(self) -> int:
        return self.scanner.risk_score()

    def generate(self, as_json: bool = False) -> str:
        return self.generate_json_report() if as_json else self.generate_human_report()

    def _format_finding(self, finding: Finding) -> List[str]:
        lines = [f"[{finding.severity.label}] {finding.category.value}: {finding.description}"]
        if self.show_offsets and finding.offset is not None:
            lines.append(f"  -> Offset: 0x{finding.offset:04X}")
        lines.append("")
        return lines

    def generate_human_report(self) -> str:
        findings = self.scanner.findings
        lines = ["--- DETECTION REPORT ---", ""]
        lines.append(f"Binary Type: {self.scanner.container_type.value}")
        lines.append("")
        lines.append(f"Total Detections: {len(findings)}")
        max_severity = self.scanner.max_severity()
        if max_severity is not None:
            lines.append(f"Maximum Severity: {max_severity.label}")
        lines.append("")

        by_category = collections.Counter(f.category for f in findings)
        if by_category:
            lines.append("Category Breakdown:")
            for category in Category:
                if by_category[category]:
                    lines.append(f"  {category.value}: {by_category[category]} findings")
            lines.append("")

        for severity, title in ((Severity.CRITICAL, "CRITICAL FINDINGS"), (Severity.HIGH, "HIGH SEVERITY")):
            selected = [f for f in findings if f.severity == severity]
            if selected:
                lines.append(f"--- {title} ---")
                lines.append("")
                for finding in selected:
                    lines.extend(self._format_finding(finding))

        risk_score = self.get_risk_score()
        lines.append("--- RISK ASSESSMENT ---")
        lines.append("")
        lines.append(f"Risk Score: {risk_score}/100")
        lines.append(f"Verdict: {verdict_for_score(risk_score)}")
        return "\n".join(lines)

    def generate_json_report(self) -> str:
        # Compact form: the finding count only, not the findings themselves.
        return json.dumps({
            "binary_type": self.scanner.container_type.value,
            "detections": len(self.scanner.findings),
            "risk_score": self.get_risk_score(),
        }, separators=(",", ":"))
