"""Scan orchestration: one Scanner per input buffer, one scan per Scanner."""
from typing import List, Optional

from polymorph.config import logger
from polymorph.findings import Category, ContainerType, Finding, Severity
from polymorph.heuristics import scan_wasm_threats
from polymorph.parsers.formats import recognize_format
from polymorph.parsers.sections import walk_sections, section_size_findings
from polymorph.parsers.signatures import SignatureTables, DEFAULT_SIGNATURE_TABLES
from polymorph.scoring import calculate_risk_score

# Container types that carry a structural walk and threat-heuristic profile.
HEURISTIC_CONTAINERS = frozenset({ContainerType.WASM})


class Scanner:
    """Owns the buffer and the findings list produced by a single scan."""

    def __init__(self, data, tables: Optional[SignatureTables] = None):
        self.data: bytes = data if isinstance(data, bytes) else bytes(data)
        self.tables = tables if tables is not None else DEFAULT_SIGNATURE_TABLES
        self.container_type = ContainerType.UNKNOWN
        self._findings: List[Finding] = []
        self._scanned = False

    @property
    def findings(self) -> List[Finding]:
        return list(self._findings)

    def run_full_scan(self, verbose: bool = False) -> List[Finding]:
        """Recognize the container, then walk and scan it if it has a threat profile."""
        if self._scanned:
            raise RuntimeError("Scanner has already run; create a new Scanner for another scan.")
        self._scanned = True

        self.container_type, structural = recognize_format(self.data)
        self._findings.extend(structural)

        if self.container_type in HEURISTIC_CONTAINERS:
            summary = walk_sections(self.data)
            self._findings.extend(section_size_findings(summary, self.tables.thresholds))
            if verbose:
                self._findings.append(Finding(
                    Category.DIAGNOSTIC, Severity.LOW,
                    f"Section walk: {summary.section_count} record(s), code {summary.code_size} bytes, "
                    f"data {summary.data_size} bytes, stopped at offset {summary.end_offset}"
                    f"{' (truncated record)' if summary.truncated else ''}",
                    summary.end_offset,
                ))
                self._findings.append(Finding(Category.DIAGNOSTIC, Severity.LOW, self.tables.summary()))
            self._findings.extend(scan_wasm_threats(self.data, self.tables))

        logger.debug(f"Scan complete: {self.container_type.value}, {len(self._findings)} finding(s)")
        return self.findings

    def max_severity(self) -> Optional[Severity]:
        return max((f.severity for f in self._findings), default=None)

    def risk_score(self) -> int:
        return calculate_risk_score(self._findings, self.container_type)
