"""Finding record and the closed tag sets it is built from."""
import enum

from dataclasses import dataclass
from typing import Optional


class Severity(enum.IntEnum):
    """Totally ordered finding severity."""
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4

    @property
    def label(self) -> str:
        return self.name.capitalize()


class Category(enum.Enum):
    """Which subsystem raised a finding."""
    WASM_BINARY = "wasm-binary"
    WASM_THREAT = "wasm-threat"
    PE_BINARY = "pe-binary"
    ELF_BINARY = "elf-binary"
    MACHO_BINARY = "macho-binary"
    DIAGNOSTIC = "diagnostic"


class ContainerType(enum.Enum):
    """Container family recognized from the header bytes."""
    WASM = "WebAssembly"
    PE = "PE"
    ELF = "ELF"
    MACHO = "Mach-O"
    UNKNOWN = "Unknown"


@dataclass(frozen=True)
class Finding:
    category: Category
    severity: Severity
    description: str
    offset: Optional[int] = None  # absent for aggregate findings
