"""Threat heuristics for WebAssembly containers.

Four independent passes run over the whole buffer, always in this order:
cryptomining signatures, dangerous imports, obfuscation indicators, size.
Escalation findings are computed from each pass's own match counts, never
by re-reading the findings list.
"""
from typing import List, Set

from polymorph.config import logger, BYTES_PER_MB
from polymorph.findings import Category, Finding, Severity
from polymorph.parsers.signatures import ImportCategory, SignatureTables
from polymorph.utils import find_pattern, count_all_occurrences


def _threat(severity: Severity, description: str, offset=None) -> Finding:
    return Finding(Category.WASM_THREAT, severity, description, offset)


def _any_match(data: bytes, signatures) -> bool:
    return any(find_pattern(data, s.encode("utf-8")) is not None for s in signatures)


def scan_cryptomining_indicators(data: bytes, tables: SignatureTables) -> List[Finding]:
    findings: List[Finding] = []
    miner_indicators = 0

    for pattern in tables.miner_signatures:
        offset = find_pattern(data, pattern.encode("utf-8"))
        if offset is not None:
            miner_indicators += 1
            findings.append(_threat(Severity.HIGH, f"Cryptomining indicator: '{pattern}'", offset))

    if _any_match(data, tables.gpu_signatures):
        findings.append(_threat(Severity.HIGH, "GPU API usage, possible GPU-based mining"))

    if _any_match(data, tables.shared_memory_signatures):
        findings.append(_threat(Severity.MEDIUM, "Shared memory API usage, possible multi-threaded mining"))

    if miner_indicators >= tables.thresholds.miner_indicator_count:
        findings.append(_threat(
            Severity.CRITICAL,
            f"Multiple cryptomining indicators ({miner_indicators}), likely miner",
        ))

    logger.debug(f"Cryptomining pass: {miner_indicators} signature(s) matched")
    return findings


def scan_suspicious_imports(data: bytes, tables: SignatureTables) -> List[Finding]:
    findings: List[Finding] = []
    matched: Set[ImportCategory] = set()

    for name, category in tables.imports.items():
        offset = find_pattern(data, name.encode("utf-8"))
        if offset is None:
            continue
        matched.add(category)
        severity = Severity.HIGH if category is ImportCategory.CODE_EXEC else Severity.MEDIUM
        findings.append(_threat(severity, f"Suspicious import: '{name}' ({category.value})", offset))

    if ImportCategory.NETWORK in matched and ImportCategory.CRYPTO in matched:
        findings.append(_threat(Severity.CRITICAL, "Network + crypto APIs: possible exfiltration"))

    logger.debug(f"Import pass: matched categories {sorted(c.value for c in matched)}")
    return findings


def scan_obfuscation(data: bytes, tables: SignatureTables) -> List[Finding]:
    findings: List[Finding] = []
    thresholds = tables.thresholds
    obfuscation_score = 0

    for indicator in tables.obfuscation_tokens:
        if find_pattern(data, indicator.encode("utf-8")) is not None:
            obfuscation_score += 1

    short_names = count_all_occurrences(data, tables.obfuscation_markers)
    if short_names > thresholds.short_identifier_count:
        obfuscation_score += thresholds.short_identifier_score
        findings.append(_threat(
            Severity.MEDIUM,
            f"Many short identifiers ({short_names}), likely obfuscated",
        ))

    if obfuscation_score >= thresholds.obfuscation_score:
        findings.append(_threat(
            Severity.HIGH,
            f"Strong obfuscation indicators (score: {obfuscation_score})",
        ))

    logger.debug(f"Obfuscation pass: score {obfuscation_score}, {short_names} marker occurrence(s)")
    return findings


def scan_large_binary(data: bytes, tables: SignatureTables) -> List[Finding]:
    if len(data) > tables.thresholds.large_binary_bytes:
        return [_threat(Severity.MEDIUM, f"Very large WASM binary ({len(data) / BYTES_PER_MB:.2f}MB)")]
    return []


THREAT_PASSES = (
    scan_cryptomining_indicators,
    scan_suspicious_imports,
    scan_obfuscation,
    scan_large_binary,
)


def scan_wasm_threats(data: bytes, tables: SignatureTables) -> List[Finding]:
    """Run every threat pass in order and return their combined findings."""
    findings: List[Finding] = []
    for threat_pass in THREAT_PASSES:
        findings.extend(threat_pass(data, tables))
    return findings
