"""Byte search primitives and output formatting helpers."""
import sys

from typing import Optional, Sequence

from polymorph.config import BYTES_PER_KB


def _as_bytes(data) -> bytes:
    # Concrete bytes so slicing and find() behave the same for memoryview, mmap, etc.
    if isinstance(data, (bytes, bytearray)):
        return data
    return bytes(data)


def find_pattern(haystack: bytes, needle: bytes) -> Optional[int]:
    """Return the lowest offset of *needle* inside *haystack*, or None.

    Works on arbitrary binary data; no text encoding is assumed. An empty
    needle never matches.
    """
    if not needle:
        return None
    offset = _as_bytes(haystack).find(_as_bytes(needle))
    return offset if offset >= 0 else None


def count_occurrences(haystack: bytes, needle: bytes) -> int:
    """Count every occurrence of *needle*, overlapping ones included.

    ``b"$$$"`` holds two occurrences of ``b"$$"``.
    """
    if not needle:
        return 0
    haystack = _as_bytes(haystack)
    count = 0
    offset = haystack.find(needle)
    while offset >= 0:
        count += 1
        offset = haystack.find(needle, offset + 1)
    return count


def count_all_occurrences(haystack: bytes, needles: Sequence[bytes]) -> int:
    return sum(count_occurrences(haystack, n) for n in needles)


def format_bytes(size: int) -> str:
    """Human-readable size: ``512 B``, ``1.50 KB``, ``2.00 MB``."""
    if size < BYTES_PER_KB:
        return f"{size} B"
    value = size / BYTES_PER_KB
    for unit in ("KB", "MB"):
        if value < BYTES_PER_KB:
            return f"{value:.2f} {unit}"
        value /= BYTES_PER_KB
    return f"{value:.2f} GB"


def safe_print(text_to_print, verbose_prefix="", file=None):
    stream = file if file is not None else sys.stdout
    try:
        print(f"{verbose_prefix}{text_to_print}", file=stream)
    except UnicodeEncodeError:
        try:
            output_encoding = stream.encoding if getattr(stream, "encoding", None) else 'utf-8'
            encoded_text = str(text_to_print).encode(output_encoding, errors='backslashreplace').decode(output_encoding, errors='ignore')
            print(f"{verbose_prefix}{encoded_text} (some characters replaced/escaped)", file=stream)
        except Exception:
            print(f"{verbose_prefix}<Unencodable string: contains characters not supported by output encoding>", file=stream)
