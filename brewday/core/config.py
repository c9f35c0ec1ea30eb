import os
import logging
from logging.handlers import RotatingFileHandler

# --- CONFIGURATION & LOGGING ---
LOG_FILE = os.getenv("BREWDAY_LOG_FILE", "")

# Setup Structured Logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger("BrewDay")
if LOG_FILE:
    file_handler = RotatingFileHandler(LOG_FILE, maxBytes=1_000_000, backupCount=5)
    file_handler.setFormatter(logging.Formatter('%(asctime)s - %(levelname)s - %(message)s'))
    logger.addHandler(file_handler)

DEFAULTS = {
    "si_units": "true", "bottled": "true", "port": "5000",
    "room_temp": "23.0", "burner_energy": "9000.0", "mash_heat_loss": "5.0",
    "keg_temp": "4.0", "default_primary_days": "14"
}

# Config Cache
_config_cache = {}

def refresh_config_cache():
    """Reloads the cache from defaults, overridden by BREWDAY_* environment variables."""
    global _config_cache
    _config_cache = {k: os.getenv(f"BREWDAY_{k.upper()}", v) for k, v in DEFAULTS.items()}

def get_config(key):
    return _config_cache.get(key)

def get_all_config():
    return _config_cache

def set_config(key, value):
    global _config_cache
    _config_cache[key] = str(value)

def get_bool_config(key):
    return str(get_config(key)).lower() in ("1", "true", "yes", "on")

refresh_config_cache()
