"""
Central configuration: logging, exit codes and verdict bands.

Other modules import what they need from this module.
"""
import logging

# --- Logging Setup ---
logging.basicConfig(level=logging.WARNING, format='%(asctime)s - %(levelname)s - %(name)s - %(message)s')
logger = logging.getLogger("PolyMorph")

# --- Exit Codes ---
EXIT_CLEAN = 0
EXIT_LOW = 1
EXIT_MEDIUM = 2
EXIT_HIGH = 3
EXIT_CRITICAL = 4
EXIT_ERROR = 5

# Minimum score for each threat-level exit code, checked highest first.
EXIT_CODE_THRESHOLDS = (
    (80, EXIT_CRITICAL),
    (60, EXIT_HIGH),
    (40, EXIT_MEDIUM),
    (1, EXIT_LOW),
)

# --- Verdict Bands ---
# (upper bound inclusive, label). Five contiguous bands covering 0..100.
VERDICT_BANDS = (
    (20, "CLEAN"),
    (40, "LOW RISK"),
    (60, "MEDIUM RISK"),
    (80, "HIGH RISK"),
    (100, "CRITICAL THREAT"),
)

MAX_RISK_SCORE = 100

BYTES_PER_KB = 1024
BYTES_PER_MB = 1024 * 1024
