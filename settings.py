from pathlib import Path
from config.loader import get_config_loader

# Get the config loader instance
config = get_config_loader()

# Logging
LOG_LEVEL = config.get("LOG_LEVEL", "error")
DEBUG_LOG_FILE = config.get("COTATE_DEBUG_LOG", "cotate_debug.log")

# Codex CLI home directory (auth.json lives here, saved accounts next to it)
CODEX_HOME = config.get("CODEX_HOME", "~/.codex")
AUTH_FILE = str(Path(CODEX_HOME) / "auth.json")
AUTHS_FILE = config.get("COTATE_AUTHS_FILE", str(Path(CODEX_HOME) / "_auths.json"))

# Network timeout for the usage and token endpoints (seconds)
REQUEST_TIMEOUT = config.get("REQUEST_TIMEOUT", 30.0)

# Cached rate limits are trusted for this long before being re-fetched
RATE_LIMIT_CACHE_SECONDS = config.get("RATE_LIMIT_CACHE_SECONDS", 180)
# Delay between consecutive usage requests when refreshing several accounts
SYNC_PACING_SECONDS = config.get("SYNC_PACING_SECONDS", 1.0)

# ChatGPT backend configuration (hardcoded - not user configurable)
CHATGPT_BASE_URL = "https://chatgpt.com/backend-api"
RATE_LIMIT_URL = f"{CHATGPT_BASE_URL}/wham/usage"
CHATGPT_OAUTH_ISSUER = "https://auth.openai.com"
REFRESH_TOKEN_URL = f"{CHATGPT_OAUTH_ISSUER}/oauth/token"
CHATGPT_CLIENT_ID = "app_EMoamEEZ73f0CkXaXp7hrann"
REFRESH_SCOPE = "openid profile email"
USER_AGENT = "codex_cli_rs/0.0.0 (Windows 10.0.26100; x86_64) WindowsTerminal"
ACCOUNT_ID_HEADER = "ChatGPT-Account-Id"
