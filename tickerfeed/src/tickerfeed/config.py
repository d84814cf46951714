import os
import logging
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = "tickerfeed.db"
DEFAULT_HTTP_TIMEOUT = 10.0

def load_env_file(path: str = ".env"):
    """
    Load KEY=VALUE lines from a .env file into os.environ.
    Variables already set in the environment win.
    """
    p = Path(path)
    if not p.exists():
        return

    try:
        with open(p) as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith('#'):
                    continue
                if line.startswith('export '):
                    line = line[len('export '):]
                if '=' in line:
                    key, val = line.split('=', 1)
                    key = key.strip()
                    val = val.strip().strip('"').strip("'")
                    if key not in os.environ:
                        os.environ[key] = val
    except OSError as e:
        logger.warning(f"Failed to load .env: {e}")

# Load on import
load_env_file()

def get_finnhub_key() -> Optional[str]:
    """Finnhub API key, or None when unset or still the template placeholder."""
    key = os.environ.get("FINNHUB_API_KEY")
    if not key or key == "your_key_here":
        return None
    return key

def get_db_path() -> str:
    return os.environ.get("TICKERFEED_DB") or DEFAULT_DB_PATH

def get_http_timeout() -> float:
    raw = os.environ.get("TICKERFEED_HTTP_TIMEOUT")
    if not raw:
        return DEFAULT_HTTP_TIMEOUT
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid TICKERFEED_HTTP_TIMEOUT={raw!r}")
        return DEFAULT_HTTP_TIMEOUT
    return value if value > 0 else DEFAULT_HTTP_TIMEOUT

def get_log_level() -> int:
    name = (os.environ.get("TICKERFEED_LOG_LEVEL") or "INFO").strip().upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO
