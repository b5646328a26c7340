import os
from pathlib import Path
from typing import Dict, Any
from dotenv import load_dotenv

# Load environment variables from ENV_FILE if specified, or .env.local, or .env
env_file = os.getenv('ENV_FILE')
if env_file:
    load_dotenv(Path(env_file))
else:
    # Try .env.local first, then fall back to .env
    env_local = Path.cwd() / '.env.local'
    if env_local.exists():
        load_dotenv(env_local)
    else:
        load_dotenv()


def _number_from_env(key: str, fallback: int) -> int:
    """Extract integer from environment variable with fallback."""
    raw = os.getenv(key)
    if raw is None:
        return fallback

    try:
        return int(raw)
    except ValueError:
        return fallback


POSTMARK_API_URL = 'https://api.postmarkapp.com'
SPARKPOST_API_URL = 'https://api.sparkpost.com/api/v1'
DEFAULT_HTTP_TIMEOUT = 30


def load_settings() -> Dict[str, Any]:
    """
    Read courier settings from the environment.

    The returned mapping is what create_courier() expects, so it can be
    passed straight through or merged with explicit values.
    """
    return {
        'courier_provider': os.getenv('COURIER_PROVIDER'),
        'postmark_token': os.getenv('POSTMARK_SERVER_TOKEN'),
        'postmark_base_uri': os.getenv('POSTMARK_BASE_URI', POSTMARK_API_URL),
        'sendgrid_key': os.getenv('SENDGRID_API_KEY'),
        'sparkpost_key': os.getenv('SPARKPOST_API_KEY'),
        'sparkpost_base_uri': os.getenv('SPARKPOST_BASE_URI', SPARKPOST_API_URL),
        'smtp_host': os.getenv('SMTP_HOST', 'localhost'),
        'smtp_port': _number_from_env('SMTP_PORT', 25),
        'http_timeout': _number_from_env('HTTP_TIMEOUT', DEFAULT_HTTP_TIMEOUT),
    }
