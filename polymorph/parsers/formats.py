"""Container format recognition from magic bytes.

``recognize_format()`` identifies the container family of a buffer and
returns the Low-severity structural findings that go with it. An
unrecognized buffer is not an error: it yields ``ContainerType.UNKNOWN``
and no findings.
"""
import struct

from typing import List, Tuple

import pefile

from polymorph.config import logger
from polymorph.findings import Category, ContainerType, Finding, Severity

WASM_MAGIC = b'\x00asm'
WASM_VERSION_1 = b'\x01\x00\x00\x00'
WASM_HEADER_SIZE = 8

_ELF_MAGIC = b'\x7fELF'
_ELF_CLASSES = {1: "32-bit", 2: "64-bit"}

# Mach-O magic values (32/64 bit, big/little-endian, plus fat/universal)
_MACHO_MAGICS = {
    b'\xfe\xed\xfa\xce': "32-bit", b'\xce\xfa\xed\xfe': "32-bit",
    b'\xfe\xed\xfa\xcf': "64-bit", b'\xcf\xfa\xed\xfe': "64-bit",
}
_MACHO_FAT_MAGICS = (
    b'\xca\xfe\xba\xbe', b'\xbe\xba\xfe\xca',
)

Recognition = Tuple[ContainerType, List[Finding]]


def detect_format_from_magic(magic: bytes) -> str:
    """Return a short format string from the first bytes of a buffer.

    Returns one of: ``'wasm'``, ``'pe'``, ``'elf'``, ``'macho'``, or ``'unknown'``.
    """
    if len(magic) < 2:
        return "unknown"
    if magic[:4] == WASM_MAGIC:
        return "wasm"
    if magic[:2] == b'MZ':
        return "pe"
    if magic[:4] == _ELF_MAGIC:
        return "elf"
    if magic[:4] in _MACHO_MAGICS or magic[:4] in _MACHO_FAT_MAGICS:
        return "macho"
    return "unknown"


def _recognize_wasm(data: bytes) -> Recognition:
    # Magic alone is not enough: the version field must be present too.
    if len(data) < WASM_HEADER_SIZE:
        return ContainerType.UNKNOWN, []
    findings = [Finding(Category.WASM_BINARY, Severity.LOW, "WebAssembly binary detected", 0)]
    if data[4:8] == WASM_VERSION_1:
        findings.append(Finding(Category.WASM_BINARY, Severity.LOW, "WASM version 1 (mvp)", 4))
    return ContainerType.WASM, findings


def _recognize_pe(data: bytes) -> Recognition:
    try:
        pe = pefile.PE(data=data, fast_load=True)
    except pefile.PEFormatError as e:
        logger.debug(f"MZ header present but PE parsing failed: {e}")
        return ContainerType.UNKNOWN, []
    except Exception as e:
        logger.debug(f"Unexpected error confirming PE header: {type(e).__name__} - {e}")
        return ContainerType.UNKNOWN, []
    try:
        machine = pe.FILE_HEADER.Machine
        machine_name = pefile.MACHINE_TYPE.get(machine, f"UNKNOWN_MACHINE({hex(machine)})")
        flavour = "PE32+" if pe.PE_TYPE == pefile.OPTIONAL_HEADER_MAGIC_PE_PLUS else "PE32"
        header_offset = pe.FILE_HEADER.get_file_offset()
    finally:
        pe.close()
    findings = [Finding(Category.PE_BINARY, Severity.LOW, "PE binary detected", 0)]
    if 0 <= header_offset <= len(data):
        findings.append(Finding(Category.PE_BINARY, Severity.LOW,
                                f"{flavour} image, machine {machine_name}", header_offset))
    return ContainerType.PE, findings


def _recognize_elf(data: bytes) -> Recognition:
    findings = [Finding(Category.ELF_BINARY, Severity.LOW, "ELF binary detected", 0)]
    if len(data) > 4 and data[4] in _ELF_CLASSES:
        findings.append(Finding(Category.ELF_BINARY, Severity.LOW, f"ELF class {_ELF_CLASSES[data[4]]}", 4))
    return ContainerType.ELF, findings


def _recognize_macho(data: bytes) -> Recognition:
    magic = data[:4]
    if magic in _MACHO_FAT_MAGICS:
        # 0xCAFEBABE is shared with Java class files
        if len(data) >= 8 and 44 <= struct.unpack_from('>H', data, 6)[0] <= 68:
            return ContainerType.UNKNOWN, []
        return ContainerType.MACHO, [
            Finding(Category.MACHO_BINARY, Severity.LOW, "Mach-O Fat/Universal binary detected", 0),
        ]
    return ContainerType.MACHO, [
        Finding(Category.MACHO_BINARY, Severity.LOW, "Mach-O binary detected", 0),
        Finding(Category.MACHO_BINARY, Severity.LOW, f"Mach-O {_MACHO_MAGICS[magic]} image", 0),
    ]


_RECOGNIZERS = {
    "wasm": _recognize_wasm,
    "pe": _recognize_pe,
    "elf": _recognize_elf,
    "macho": _recognize_macho,
}


def recognize_format(data: bytes) -> Recognition:
    """Identify the container type of *data* and emit its structural findings."""
    base_format = detect_format_from_magic(data[:4])
    recognizer = _RECOGNIZERS.get(base_format)
    if recognizer is None:
        return ContainerType.UNKNOWN, []
    container_type, findings = recognizer(data)
    logger.debug(f"Format recognizer: magic '{base_format}' -> {container_type.value}")
    return container_type, findings
