"""Signature tables and numeric thresholds used by the threat heuristics.

The tables are read-only configuration. ``DEFAULT_SIGNATURE_TABLES`` is the
built-in set; ``load_signature_tables()`` builds a replacement from a JSON
file so signatures can be updated without touching engine code.
"""
import json
import enum

from dataclasses import dataclass, field, fields, replace
from types import MappingProxyType
from typing import Dict, Any, Mapping, Tuple

from polymorph.config import logger

SIGNATURE_TABLES_VERSION = "1"
HEX_MARKER_PREFIX = "hex:"


class ImportCategory(enum.Enum):
    """Capability a dangerous host-API import name grants."""
    NETWORK = "network"
    CRYPTO = "crypto"
    CODE_EXEC = "code-exec"
    DOM = "dom"
    STORAGE = "storage"
    GPU = "gpu"
    THREADING = "threading"
    MINING_SERVICE = "mining-service"


@dataclass(frozen=True)
class Thresholds:
    code_section_bytes: int = 100_000
    data_section_bytes: int = 50_000
    large_binary_bytes: int = 1_000_000
    short_identifier_count: int = 20  # strictly greater than
    short_identifier_score: int = 2
    obfuscation_score: int = 3
    miner_indicator_count: int = 3


_DEFAULT_IMPORTS: Dict[str, ImportCategory] = {
    "crypto.subtle": ImportCategory.CRYPTO,
    "crypto.getRandomValues": ImportCategory.CRYPTO,
    "WebGL": ImportCategory.GPU,
    "gpu": ImportCategory.GPU,
    "WebGPU": ImportCategory.GPU,
    "Worker": ImportCategory.THREADING,
    "SharedArrayBuffer": ImportCategory.THREADING,
    "fetch": ImportCategory.NETWORK,
    "XMLHttpRequest": ImportCategory.NETWORK,
    "WebSocket": ImportCategory.NETWORK,
    "navigator.sendBeacon": ImportCategory.NETWORK,
    "document.createElement": ImportCategory.DOM,
    "eval": ImportCategory.CODE_EXEC,
    "Function": ImportCategory.CODE_EXEC,
    "document.write": ImportCategory.DOM,
    "innerHTML": ImportCategory.DOM,
    "FileReader": ImportCategory.STORAGE,
    "Blob": ImportCategory.STORAGE,
    "File": ImportCategory.STORAGE,
    "coinhive": ImportCategory.MINING_SERVICE,
    "cryptonight": ImportCategory.MINING_SERVICE,
    "monero": ImportCategory.MINING_SERVICE,
    "xmrig": ImportCategory.MINING_SERVICE,
    "authedmine": ImportCategory.MINING_SERVICE,
    "crypto-loot": ImportCategory.MINING_SERVICE,
    "coinimp": ImportCategory.MINING_SERVICE,
}


@dataclass(frozen=True)
class SignatureTables:
    """Immutable signature set shared by every scan that uses it."""
    version: str = SIGNATURE_TABLES_VERSION
    miner_signatures: Tuple[str, ...] = (
        "keccak", "sha3", "blake2", "groestl", "jh", "skein",
        "cryptonight", "cn/r", "cn/half", "cn/2",
    )
    gpu_signatures: Tuple[str, ...] = ("WebGL", "WebGPU")
    shared_memory_signatures: Tuple[str, ...] = ("SharedArrayBuffer",)
    imports: Mapping[str, ImportCategory] = field(default_factory=lambda: _DEFAULT_IMPORTS)
    obfuscation_tokens: Tuple[str, ...] = (
        "_0x", "0x", "$_", "$$", "__", "eval", "atob", "btoa",
    )
    obfuscation_markers: Tuple[bytes, ...] = (b"_0x", b"_0X", b"$_", b"$$", b"__")
    thresholds: Thresholds = field(default_factory=Thresholds)

    def __post_init__(self):
        # Keep the import table read-only whatever mapping the caller passed.
        object.__setattr__(self, "imports", MappingProxyType(dict(self.imports)))

    def __hash__(self):
        return hash(tuple(
            frozenset(self.imports.items()) if f.name == "imports" else getattr(self, f.name)
            for f in fields(self)
        ))

    def summary(self) -> str:
        return (f"Signature tables v{self.version}: {len(self.miner_signatures)} miner, "
                f"{len(self.imports)} import, {len(self.obfuscation_tokens)} obfuscation signatures")


DEFAULT_SIGNATURE_TABLES = SignatureTables()


def _string_tuple(raw: Any, key: str) -> Tuple[str, ...]:
    if not isinstance(raw, list) or not all(isinstance(s, str) and s for s in raw):
        raise ValueError(f"'{key}' must be a list of non-empty strings.")
    return tuple(raw)


def _parse_markers(raw: Any) -> Tuple[bytes, ...]:
    """Markers are UTF-8 text, or raw bytes written as 'hex:ff00'."""
    markers = []
    for marker in _string_tuple(raw, "obfuscation_markers"):
        if not marker.startswith(HEX_MARKER_PREFIX):
            markers.append(marker.encode("utf-8"))
            continue
        try:
            value = bytes.fromhex(marker[len(HEX_MARKER_PREFIX):])
        except ValueError:
            raise ValueError(f"Obfuscation marker '{marker}' is not valid hex.") from None
        if not value:
            raise ValueError(f"Obfuscation marker '{marker}' is empty.")
        markers.append(value)
    return tuple(markers)


def _parse_imports(raw: Any) -> Dict[str, ImportCategory]:
    if not isinstance(raw, dict):
        raise ValueError("'imports' must be an object mapping API name to category.")
    imports: Dict[str, ImportCategory] = {}
    for name, cat in raw.items():
        if not name:
            raise ValueError("'imports' contains an empty API name.")
        try:
            imports[name] = ImportCategory(cat)
        except ValueError:
            valid = ", ".join(c.value for c in ImportCategory)
            raise ValueError(f"Unknown import category '{cat}' for '{name}'. Expected one of: {valid}.") from None
    return imports


def _parse_thresholds(raw: Any, base: Thresholds) -> Thresholds:
    if not isinstance(raw, dict):
        raise ValueError("'thresholds' must be an object.")
    known = {f.name for f in fields(Thresholds)}
    updates = {}
    for key, value in raw.items():
        if key not in known:
            raise ValueError(f"Unknown threshold '{key}'.")
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise ValueError(f"Threshold '{key}' must be a non-negative integer.")
        updates[key] = value
    return replace(base, **updates)


def signature_tables_from_dict(data: Dict[str, Any], base: SignatureTables = DEFAULT_SIGNATURE_TABLES) -> SignatureTables:
    """Overlay *data* on *base*; keys that are absent keep the base values."""
    if not isinstance(data, dict):
        raise ValueError("Signature file must contain a JSON object.")
    updates: Dict[str, Any] = {}
    if "version" in data:
        updates["version"] = str(data["version"])
    for key in ("miner_signatures", "gpu_signatures", "shared_memory_signatures", "obfuscation_tokens"):
        if key in data:
            updates[key] = _string_tuple(data[key], key)
    if "obfuscation_markers" in data:
        updates["obfuscation_markers"] = _parse_markers(data["obfuscation_markers"])
    if "imports" in data:
        updates["imports"] = _parse_imports(data["imports"])
    if "thresholds" in data:
        updates["thresholds"] = _parse_thresholds(data["thresholds"], base.thresholds)
    return replace(base, **updates)


def load_signature_tables(path: str) -> SignatureTables:
    """Read a JSON signature file.

    Raises OSError if the file cannot be read and ValueError if its
    content is not a valid signature set.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Signature file {path} is not valid JSON: {e}") from e
    tables = signature_tables_from_dict(data)
    logger.debug(f"Loaded signature tables from {path}. {tables.summary()}")
    return tables
