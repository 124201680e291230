"""Aggregate risk score, verdict band and exit-code mapping.

The score is a pure function of the findings multiset and container type:
a weighted sum per category, each category capped, clamped to [0, 100].
Weights grow with severity and are never negative, so adding a finding or
raising a severity can only raise the score.
"""
import collections

from typing import Iterable

from polymorph.config import (
    MAX_RISK_SCORE, VERDICT_BANDS, EXIT_CODE_THRESHOLDS, EXIT_CLEAN,
)
from polymorph.findings import Category, ContainerType, Finding, Severity

SEVERITY_WEIGHTS = {
    Severity.LOW: 0,
    Severity.MEDIUM: 10,
    Severity.HIGH: 20,
    Severity.CRITICAL: 35,
}

# Structural and diagnostic findings describe the container, not a threat.
CATEGORY_CAPS = {
    Category.WASM_BINARY: 0,
    Category.WASM_THREAT: MAX_RISK_SCORE,
    Category.PE_BINARY: 0,
    Category.ELF_BINARY: 0,
    Category.MACHO_BINARY: 0,
    Category.DIAGNOSTIC: 0,
}


def calculate_risk_score(findings: Iterable[Finding], container_type: ContainerType) -> int:
    if container_type is ContainerType.UNKNOWN:
        return 0
    per_category = collections.Counter()
    for finding in findings:
        per_category[finding.category] += SEVERITY_WEIGHTS[finding.severity]
    total = sum(min(weight, CATEGORY_CAPS[category]) for category, weight in per_category.items())
    return max(0, min(MAX_RISK_SCORE, total))


def verdict_for_score(score: int) -> str:
    for upper, label in VERDICT_BANDS:
        if score <= upper:
            return label
    return VERDICT_BANDS[-1][1]


def exit_code_for_score(score: int) -> int:
    for minimum, code in EXIT_CODE_THRESHOLDS:
        if score >= minimum:
            return code
    return EXIT_CLEAN
