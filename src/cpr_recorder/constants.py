"""
Constants and catalogues for the CPR recorder.

Event categories, the one-tap action catalogues, storage keys and default paths.
"""

from enum import Enum
from pathlib import Path
from typing import NamedTuple

# ============================================================================
# Event Categories
# ============================================================================


class EventCategory(str, Enum):
    """Tags classifying a logged resuscitation action."""

    RHYTHM = "Rhythm"
    SHOCK = "Shock"
    DRUG = "Drug"
    AIRWAY = "Airway"
    ASSESSMENT = "Assessment"
    OUTCOME = "Outcome"
    CPR = "CPR"
    NOTE = "Note"


# ============================================================================
# One-tap Catalogues
# ============================================================================

DEFAULT_RHYTHMS = ["VF/VT", "PEA", "Asystole", "ROSC", "Unknown"]

SHOCK_LEVELS = [120, 150, 200, 300, 360]  # joules
DEFAULT_SHOCK_ENERGY = SHOCK_LEVELS[2]

AIRWAY_ACTIONS = [
    "BVM",
    "OPA/NPA",
    "Supraglottic",
    "ETT placed",
    "Capnography",
    "IV/IO established",
]


class DrugEntry(NamedTuple):
    code: str
    label: str
    default_dose: str


DEFAULT_DRUGS = [
    DrugEntry("EPI", "Epinephrine 1 mg IV/IO", "1 mg"),
    DrugEntry("AMIO", "Amiodarone 300 mg IV/IO", "300 mg"),
    DrugEntry("AMIO150", "Amiodarone 150 mg", "150 mg"),
    DrugEntry("LIDO", "Lidocaine 1–1.5 mg/kg", ""),
    DrugEntry("MgSO4", "Magnesium 1–2 g", ""),
    DrugEntry("CaCl2", "Calcium Chloride", ""),
    DrugEntry("NaHCO3", "Sodium Bicarbonate", ""),
]

# The dedicated epinephrine action is the only path that moves the marker
EPINEPHRINE_CODE = "EPI"
EPINEPHRINE_LABEL = "Epinephrine 1 mg"
EPINEPHRINE_DOSE = "1 mg"
EPINEPHRINE_ROUTE = "IV/IO"
EPINEPHRINE_MATCH = "Epinephrine"

# Fixed event labels
LABEL_COMPRESSIONS_START = "Compressions START"
LABEL_COMPRESSIONS_STOP = "Compressions STOP"
LABEL_PULSE_CHECK = "Pulse check"
LABEL_RHYTHM_CHECK = "Rhythm check"
LABEL_ROSC = "ROSC"
LABEL_ROSC_ANNOUNCED = "ROSC announced"
LABEL_INTUBATION = "ETT placed"

# ============================================================================
# Timers
# ============================================================================

COMPRESSION_TICK_MS = 1000
DEFAULT_WATCH_INTERVAL_SECONDS = 1.0

# ============================================================================
# Storage
# ============================================================================

STORAGE_KEY_META = "cpr.meta"
STORAGE_KEY_SESSION = "cpr.session"

DEFAULT_HOME_DIR = Path.home() / ".cpr_recorder"
DEFAULT_DATABASE_PATH = str(DEFAULT_HOME_DIR / "cpr_recorder.db")
DEFAULT_LOCATION = "ED"

# ============================================================================
# Export
# ============================================================================

EXPORT_FILE_PREFIX = "cpr"
CSV_HEADER = ["Clock", "T+ (mm:ss)", "Type", "Label", "Details"]
MIME_CSV = "text/csv"
MIME_JSON = "application/json"
MIME_HTML = "text/html"
PRINT_TITLE = "CPR Summary"

# Logging defaults
DEFAULT_LOG_DIR = DEFAULT_HOME_DIR / "logs"
DEFAULT_LOG_FILE = "cpr_recorder.log"
DEFAULT_LOG_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
DEFAULT_LOG_BACKUP_COUNT = 5
