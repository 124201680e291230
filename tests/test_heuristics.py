"""Unit tests for polymorph/heuristics.py: the four threat passes and their escalations."""
from dataclasses import replace

import pytest

from polymorph.findings import Category, Severity
from polymorph.heuristics import (
    scan_cryptomining_indicators,
    scan_suspicious_imports,
    scan_obfuscation,
    scan_large_binary,
    scan_wasm_threats,
)
from polymorph.parsers.signatures import (
    DEFAULT_SIGNATURE_TABLES,
    ImportCategory,
    SignatureTables,
    Thresholds,
)

TABLES = DEFAULT_SIGNATURE_TABLES


def _severities(findings):
    return [f.severity for f in findings]


def _critical(findings):
    return [f for f in findings if f.severity is Severity.CRITICAL]


# ---------------------------------------------------------------------------
# Cryptomining signatures
# ---------------------------------------------------------------------------

class TestCryptominingPass:
    def test_no_match(self, make_wasm):
        assert scan_cryptomining_indicators(make_wasm(b"hello world"), TABLES) == []

    def test_single_signature_with_offset(self, make_wasm):
        findings = scan_cryptomining_indicators(make_wasm(b"..keccak.."), TABLES)
        assert len(findings) == 1
        assert findings[0].severity is Severity.HIGH
        assert findings[0].category is Category.WASM_THREAT
        assert "'keccak'" in findings[0].description
        assert findings[0].offset == 10

    def test_first_occurrence_reported(self, make_wasm):
        findings = scan_cryptomining_indicators(make_wasm(b"skein skein"), TABLES)
        assert [f.offset for f in findings] == [8]

    def test_three_signatures_escalate_once(self, make_wasm):
        findings = scan_cryptomining_indicators(make_wasm(b"keccak blake2 groestl"), TABLES)
        assert _severities(findings) == [Severity.HIGH] * 3 + [Severity.CRITICAL]
        assert "(3), likely miner" in findings[-1].description
        assert findings[-1].offset is None
        assert [f.offset for f in findings[:3]] == [8, 15, 22]

    def test_two_signatures_do_not_escalate(self, make_wasm):
        findings = scan_cryptomining_indicators(make_wasm(b"keccak blake2"), TABLES)
        assert _critical(findings) == []

    def test_repeats_count_once(self, make_wasm):
        findings = scan_cryptomining_indicators(make_wasm(b"keccak keccak keccak"), TABLES)
        assert _critical(findings) == []

    def test_many_signatures_single_critical(self, make_wasm):
        payload = b" ".join(s.encode() for s in TABLES.miner_signatures)
        findings = scan_cryptomining_indicators(make_wasm(payload), TABLES)
        assert len(_critical(findings)) == 1
        assert f"({len(TABLES.miner_signatures)})" in _critical(findings)[0].description

    def test_gpu_family_reported_once(self, make_wasm):
        findings = scan_cryptomining_indicators(make_wasm(b"WebGL WebGPU"), TABLES)
        assert len(findings) == 1
        assert findings[0].severity is Severity.HIGH
        assert "GPU-based mining" in findings[0].description

    def test_shared_memory(self, make_wasm):
        findings = scan_cryptomining_indicators(make_wasm(b"SharedArrayBuffer"), TABLES)
        assert len(findings) == 1
        assert findings[0].severity is Severity.MEDIUM
        assert "multi-threaded mining" in findings[0].description

    def test_custom_tables(self):
        tables = replace(TABLES, miner_signatures=("aa", "bb"),
                         thresholds=Thresholds(miner_indicator_count=2))
        findings = scan_cryptomining_indicators(b"xxaabb", tables)
        assert _severities(findings) == [Severity.HIGH, Severity.HIGH, Severity.CRITICAL]


# ---------------------------------------------------------------------------
# Dangerous imports
# ---------------------------------------------------------------------------

class TestImportPass:
    def test_network_and_crypto_escalate(self, make_wasm):
        findings = scan_suspicious_imports(make_wasm(b"fetch crypto.subtle"), TABLES)
        assert len(findings) == 3
        assert _severities(findings[:2]) == [Severity.MEDIUM, Severity.MEDIUM]
        critical = _critical(findings)
        assert len(critical) == 1
        assert "possible exfiltration" in critical[0].description

    @pytest.mark.parametrize("payload", [
        b"fetch",
        b"WebSocket XMLHttpRequest",
        b"crypto.subtle",
        b"crypto.getRandomValues",
        b"fetch crypto-loot",  # mining service, not a crypto API
    ])
    def test_single_side_never_escalates(self, make_wasm, payload):
        assert _critical(scan_suspicious_imports(make_wasm(payload), TABLES)) == []

    def test_multiple_pairs_escalate_once(self, make_wasm):
        data = make_wasm(b"fetch WebSocket crypto.subtle crypto.getRandomValues")
        assert len(_critical(scan_suspicious_imports(data, TABLES))) == 1

    @pytest.mark.parametrize("name", ["eval", "Function"])
    def test_code_execution_is_high(self, make_wasm, name):
        findings = scan_suspicious_imports(make_wasm(name.encode()), TABLES)
        assert len(findings) == 1
        assert findings[0].severity is Severity.HIGH
        assert f"'{name}'" in findings[0].description

    def test_other_categories_are_medium(self, make_wasm):
        findings = scan_suspicious_imports(make_wasm(b"innerHTML xmrig"), TABLES)
        assert _severities(findings) == [Severity.MEDIUM, Severity.MEDIUM]

    def test_names_the_exact_api_and_offset(self, make_wasm):
        findings = scan_suspicious_imports(make_wasm(b"..WebSocket"), TABLES)
        assert len(findings) == 1
        assert "'WebSocket'" in findings[0].description
        assert findings[0].offset == 10

    def test_substring_names_both_match(self, make_wasm):
        # "File" is contained in "FileReader"
        findings = scan_suspicious_imports(make_wasm(b"FileReader"), TABLES)
        assert {f.description.split("'")[1] for f in findings} == {"FileReader", "File"}

    def test_custom_import_table(self):
        tables = replace(TABLES, imports={"netx": ImportCategory.NETWORK, "cryx": ImportCategory.CRYPTO})
        findings = scan_suspicious_imports(b"netx cryx fetch", tables)
        assert len(findings) == 3
        assert findings[-1].severity is Severity.CRITICAL


# ---------------------------------------------------------------------------
# Obfuscation indicators
# ---------------------------------------------------------------------------

class TestObfuscationPass:
    def test_clean(self, make_wasm):
        assert scan_obfuscation(make_wasm(b"plain text"), TABLES) == []

    def test_score_below_threshold(self, make_wasm):
        # "_0x" and "0x" -> score 2
        assert scan_obfuscation(make_wasm(b"_0x"), TABLES) == []

    def test_strong_indicators(self, make_wasm):
        findings = scan_obfuscation(make_wasm(b"_0x __ atob"), TABLES)
        assert len(findings) == 1
        assert findings[0].severity is Severity.HIGH
        assert "score: 4" in findings[0].description

    def test_marker_count_uses_overlapping_occurrences(self, make_wasm):
        # 22 "$" characters hold 21 overlapping "$$" occurrences
        findings = scan_obfuscation(make_wasm(b"$$" * 11), TABLES)
        assert _severities(findings) == [Severity.MEDIUM, Severity.HIGH]
        assert "Many short identifiers (21)" in findings[0].description
        # "$$" token (1) + marker increment (2)
        assert "score: 3" in findings[1].description

    def test_marker_count_at_threshold(self, make_wasm):
        # 20 "$" characters -> 19 occurrences, not above 20
        assert scan_obfuscation(make_wasm(b"$$" * 10), TABLES) == []

    def test_custom_thresholds(self):
        tables = replace(TABLES, thresholds=Thresholds(obfuscation_score=1))
        findings = scan_obfuscation(b"atob", tables)
        assert len(findings) == 1
        assert "score: 1" in findings[0].description


# ---------------------------------------------------------------------------
# Size anomaly
# ---------------------------------------------------------------------------

class TestLargeBinaryPass:
    def test_small(self, make_wasm):
        assert scan_large_binary(make_wasm(b"x" * 100), TABLES) == []

    def test_at_threshold(self):
        assert scan_large_binary(b"\x00" * 1_000_000, TABLES) == []

    def test_above_threshold(self):
        data = b"\x00" * 2_000_000
        findings = scan_large_binary(data, TABLES)
        assert len(findings) == 1
        assert findings[0].severity is Severity.MEDIUM
        assert "(1.91MB)" in findings[0].description


# ---------------------------------------------------------------------------
# Pass ordering
# ---------------------------------------------------------------------------

class TestScanWasmThreats:
    def test_pass_order(self, make_wasm):
        tables = replace(TABLES, thresholds=Thresholds(large_binary_bytes=10))
        findings = scan_wasm_threats(make_wasm(b"keccak fetch _0x __ atob"), tables)
        descriptions = [f.description for f in findings]
        assert descriptions[0].startswith("Cryptomining indicator")
        assert descriptions[1].startswith("Suspicious import: 'fetch'")
        assert descriptions[2].startswith("Strong obfuscation")
        assert descriptions[3].startswith("Very large WASM binary")
        assert len(findings) == 4

    def test_offsets_within_buffer(self, make_wasm):
        data = make_wasm(b"xmrig eval keccak")
        for f in scan_wasm_threats(data, TABLES):
            assert f.offset is None or 0 <= f.offset <= len(data)

    def test_tables_are_not_mutated(self, make_wasm):
        before = SignatureTables()
        scan_wasm_threats(make_wasm(b"keccak fetch crypto.subtle"), TABLES)
        assert TABLES == before
