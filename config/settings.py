"""
MedSure Interaction Engine - Configuration Settings
"""
import os
from pathlib import Path

# Base paths
BASE_DIR = Path(__file__).parent.parent
DATA_DIR = BASE_DIR / "data"
LOCAL_MEDICINE_DATASET = Path(
    os.getenv("LOCAL_MEDICINE_DATASET", str(DATA_DIR / "indian_medicine_data.json"))
)

# API Settings
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8000"))
API_TITLE = "MedSure Interaction Engine"
API_VERSION = "1.0.0"

# Upstream services
OPENFDA_EVENTS_URL = os.getenv("OPENFDA_EVENTS_URL", "https://api.fda.gov/drug/event.json")
RXNORM_BASE_URL = os.getenv("RXNORM_BASE_URL", "https://rxnav.nlm.nih.gov/REST")
HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", "30"))

OPENFDA_PAIR_LIMIT = 20
OPENFDA_SINGLE_LIMIT = 30
RXNORM_APPROXIMATE_MAX_ENTRIES = 5
RXNORM_SEARCH_LIMIT = 10

# Cache TTL (seconds)
CACHE_TTL_INTERACTION = int(os.getenv("CACHE_TTL_INTERACTION", "86400"))  # 24 hours

# Adverse-event signal policy
SIGNAL_MIN_PAIR_REPORTS = 5
SIGNAL_ELEVATION_CONCERN = 2.0
SIGNAL_ELEVATION_MODERATE = 3.0
SIGNAL_HIGH_COUNT = 10
SIGNAL_MAX_REACTIONS = 5
SIGNAL_HIGH_CONFIDENCE_REPORTS = 50
SIGNAL_MEDIUM_CONFIDENCE_REPORTS = 20

# Verdict confidence when only adverse-event data contributed
VERDICT_MEDIUM_CONFIDENCE_REPORTS = 50
VERDICT_LOW_CONFIDENCE_REPORTS = 10

SEVERE_REACTION_KEYWORDS = (
    "death", "cardiac", "bleeding", "hemorrhage", "liver", "kidney", "seizure",
    "stroke", "heart attack", "respiratory", "coma", "overdose",
)

# Evidence source labels
SOURCE_CLINICAL_KB = "Clinical Knowledge Base"
SOURCE_SAFETY_DB = "Clinical Safety Database"
SOURCE_OPENFDA = "OpenFDA Adverse Events"

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
