"""Shared fixtures for PolyMorph tests."""
import struct
import pytest

WASM_HEADER = b"\x00asm\x01\x00\x00\x00"


@pytest.fixture(autouse=True)
def isolated_user_config(tmp_path, monkeypatch):
    """Keep every test away from the real ~/.polymorph/config.json."""
    cfg_dir = tmp_path / ".polymorph"
    cfg_file = cfg_dir / "config.json"
    monkeypatch.setattr("polymorph.user_config.CONFIG_DIR", cfg_dir)
    monkeypatch.setattr("polymorph.user_config.CONFIG_FILE", cfg_file)
    monkeypatch.delenv("POLYMORPH_SIGNATURES", raising=False)
    return cfg_dir, cfg_file


@pytest.fixture
def make_wasm():
    """Build a WASM buffer: version-1 header followed by *payload*."""
    def _make(payload: bytes = b"") -> bytes:
        return WASM_HEADER + payload
    return _make


@pytest.fixture
def pe_bytes():
    """A minimal PE32+ (AMD64) image with no sections, 0x200 bytes long."""
    image = bytearray(0x200)
    image[0:2] = b'MZ'
    struct.pack_into('<I', image, 0x3C, 0x40)
    image[0x40:0x44] = b'PE\x00\x00'
    # IMAGE_FILE_HEADER
    struct.pack_into('<HHIIIHH', image, 0x44, 0x8664, 0, 0, 0, 0, 0xF0, 0x22)
    # IMAGE_OPTIONAL_HEADER64
    opt = 0x58
    struct.pack_into('<H', image, opt, 0x20B)
    struct.pack_into('<Q', image, opt + 24, 0x140000000)  # ImageBase
    struct.pack_into('<II', image, opt + 32, 0x1000, 0x200)  # SectionAlignment, FileAlignment
    struct.pack_into('<II', image, opt + 56, 0x1000, 0x200)  # SizeOfImage, SizeOfHeaders
    struct.pack_into('<H', image, opt + 68, 3)  # Subsystem: console
    struct.pack_into('<I', image, opt + 108, 16)  # NumberOfRvaAndSizes
    return bytes(image)
