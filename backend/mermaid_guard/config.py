import logging
import os
from dotenv import load_dotenv

# Load .env from project root
load_dotenv()

logger = logging.getLogger(__name__)


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("%s=%r is not an integer; using %s", name, raw, default)
        return default


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("%s=%r is not a number; using %s", name, raw, default)
        return default


# -------------------------
# Safety profile defaults
# -------------------------
PROFILE_NAME = os.getenv("MERMAID_GUARD_PROFILE_NAME", "mermaid-default-t1")
MAX_NODES = _int_env("MERMAID_GUARD_MAX_NODES", 32)
MAX_EDGES = _int_env("MERMAID_GUARD_MAX_EDGES", 96)
MAX_SUBGRAPHS = _int_env("MERMAID_GUARD_MAX_SUBGRAPHS", 4)
MAX_DEPTH = _int_env("MERMAID_GUARD_MAX_DEPTH", 3)
MAX_FAN_OUT = _int_env("MERMAID_GUARD_MAX_FAN_OUT", 12)
MAX_FAN_IN = _int_env("MERMAID_GUARD_MAX_FAN_IN", 12)
MAX_TIER = os.getenv("MERMAID_GUARD_MAX_TIER", "T2")

# -------------------------
# Drift policy
# -------------------------
DRIFT_T1_LIMIT = _float_env("MERMAID_GUARD_DRIFT_T1", 0.15)
DRIFT_T2_LIMIT = _float_env("MERMAID_GUARD_DRIFT_T2", 0.35)
REANCHOR_THRESHOLD = _float_env("MERMAID_GUARD_REANCHOR_THRESHOLD", 0.40)

# -------------------------
# Observability / API
# -------------------------
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("LOG_FORMAT", "text")
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")
    if origin.strip()
]
