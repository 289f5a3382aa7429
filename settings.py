"""Kite Connect protocol constants

Runtime configuration (keys, secrets, tokens, timeouts) is loaded once per run
by config.load_settings(); the values below are fixed by the Kite Connect API.
"""

# Kite Connect API configuration (hardcoded - not user configurable)
KITE_VERSION = "3"
API_BASE = "https://api.kite.trade"
LOGIN_BASE = "https://kite.zerodha.com"

# Endpoint paths
PROFILE_PATH = "/user/profile"
SESSION_TOKEN_PATH = "/session/token"
REFRESH_TOKEN_PATH = "/session/refresh_token"
HOLDINGS_PATH = "/portfolio/holdings"
LOGIN_PATH = "/connect/login"

# Credential store keys
ACCESS_TOKEN_KEY = "KITE_ACCESS_TOKEN"
REFRESH_TOKEN_KEY = "KITE_REFRESH_TOKEN"

# Defaults
DEFAULT_ENV_FILE = ".env"
DEFAULT_REQUEST_TIMEOUT = 30.0
DEBUG_LOG_FILE = "kite_debug.log"
