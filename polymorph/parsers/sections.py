"""Best-effort walk over the section records that follow a WASM header.

This is a cheap structural heuristic, not a WebAssembly decoder. Each
record is assumed to be ``[1-byte id][1-byte size][payload]``; real modules
encode sizes as LEB128, so the totals are approximate. The walk only
ever reads inside the buffer and stops at the first record that does not
fit.
"""
from dataclasses import dataclass
from typing import List

from polymorph.config import logger, BYTES_PER_KB
from polymorph.findings import Category, Finding, Severity
from polymorph.parsers.formats import WASM_HEADER_SIZE
from polymorph.parsers.signatures import Thresholds

CODE_SECTION_ID = 10
DATA_SECTION_ID = 11


@dataclass(frozen=True)
class SectionSummary:
    code_size: int = 0
    data_size: int = 0
    section_count: int = 0
    end_offset: int = 0   # cursor position when the walk stopped
    truncated: bool = False  # last record declared more bytes than remain


def walk_sections(data: bytes, start: int = WASM_HEADER_SIZE) -> SectionSummary:
    """Accumulate payload sizes for the code and data section ids."""
    length = len(data)
    cursor = min(max(start, 0), length)
    code_size = data_size = count = 0
    truncated = False

    while cursor + 2 <= length:
        section_id = data[cursor]
        size = data[cursor + 1]
        payload_end = cursor + 2 + size
        if payload_end > length:
            truncated = True
            break
        if section_id == CODE_SECTION_ID:
            code_size += size
        elif section_id == DATA_SECTION_ID:
            data_size += size
        count += 1
        cursor = payload_end

    logger.debug(f"Section walk stopped at offset {cursor} of {length} after {count} records"
                 f"{' (truncated record)' if truncated else ''}")
    return SectionSummary(code_size, data_size, count, cursor, truncated)


def section_size_findings(summary: SectionSummary, thresholds: Thresholds) -> List[Finding]:
    findings: List[Finding] = []
    if summary.code_size > thresholds.code_section_bytes:
        findings.append(Finding(
            Category.WASM_THREAT, Severity.MEDIUM,
            f"Large WASM code section ({summary.code_size // BYTES_PER_KB}KB), "
            "possible resource-intensive payload",
        ))
    if summary.data_size > thresholds.data_section_bytes:
        findings.append(Finding(
            Category.WASM_THREAT, Severity.MEDIUM,
            f"Large WASM data section ({summary.data_size // BYTES_PER_KB}KB), possible embedded payload",
        ))
    return findings
