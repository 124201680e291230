"""
Remembered default signature file.

``polymorph FILE --signatures PATH --save-default`` records PATH in
~/.polymorph/config.json so later runs use the same tables without the
option. The POLYMORPH_SIGNATURES environment variable overrides whatever
is stored.
"""
import os
import json
import logging

from pathlib import Path
from typing import Optional, Dict, Any

logger = logging.getLogger("PolyMorph")

CONFIG_DIR = Path.home() / ".polymorph"
CONFIG_FILE = CONFIG_DIR / "config.json"

SIGNATURES_KEY = "signatures_file"
SIGNATURES_ENV_VAR = "POLYMORPH_SIGNATURES"


def _read_config() -> Dict[str, Any]:
    # An unreadable config file is treated as empty so it never blocks a scan.
    try:
        raw = CONFIG_FILE.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError as e:
        logger.warning(f"Failed to read user config from {CONFIG_FILE}: {e}")
        return {}
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning(f"User config at {CONFIG_FILE} is not valid JSON, ignoring: {e}")
        return {}
    if not isinstance(data, dict):
        logger.warning(f"User config at {CONFIG_FILE} is not a JSON object, ignoring.")
        return {}
    return data


def default_signatures_path() -> Optional[Path]:
    """
    Return the signature file to use when none is given on the command line.

    Resolution order:
      1. POLYMORPH_SIGNATURES (relative to the working directory)
      2. 'signatures_file' in ~/.polymorph/config.json (relative to ~/.polymorph)
      3. None, meaning the built-in tables
    """
    env_val = os.getenv(SIGNATURES_ENV_VAR)
    if env_val:
        return Path(env_val).expanduser().resolve()

    stored = _read_config().get(SIGNATURES_KEY)
    if stored is None:
        return None
    if not isinstance(stored, str) or not stored:
        logger.warning(f"Ignoring '{SIGNATURES_KEY}' in {CONFIG_FILE}: expected a path string.")
        return None
    path = Path(stored).expanduser()
    if not path.is_absolute():
        path = CONFIG_DIR / path
    return path.resolve()


def remember_signatures_path(path) -> Path:
    """Store *path* as the default signature file and return its resolved form.

    Raises FileNotFoundError if *path* is not an existing file, and OSError
    if the config directory or file cannot be written. Unrelated keys
    already in the config file are kept.
    """
    resolved = Path(path).expanduser().resolve()
    if not resolved.is_file():
        raise FileNotFoundError(f"Signature file not found: {resolved}")

    config = _read_config()
    config[SIGNATURES_KEY] = str(resolved)
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    with open(CONFIG_FILE, "w", encoding="utf-8") as f:
        json.dump(config, f, indent=2, sort_keys=True)
    CONFIG_FILE.chmod(0o600)
    logger.info(f"Default signature file set to {resolved} in {CONFIG_FILE}")
    return resolved
