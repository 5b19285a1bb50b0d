"""Configuration loader for EZ Check-in with environment-specific support"""

import os
from pathlib import Path

from dotenv import load_dotenv

server_dir = Path(__file__).parent.parent.parent
env_path = server_dir / ".env"

# Load .env file if it exists. For local development only.
if env_path.exists():
    load_dotenv(env_path)


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# Configuration dictionary - set once at initialization
config = {
    "database_url": os.getenv("DATABASE_URL", "sqlite:///./ez_checkin.db"),
    "port": int(os.getenv("PORT", "8080")),
    "log_level": os.getenv("LOG_LEVEL", "INFO"),
    # Base URL embedded in every verification code, e.g. "https://checkin.example.org"
    "app_base_url": os.getenv("APP_BASE_URL", "http://localhost:8080"),
    "session_secret_key": os.getenv("SESSION_SECRET_KEY"),
    "admin_password": os.getenv("ADMIN_PASSWORD"),
    # Disable only for plain-HTTP local runs and tests
    "secure_cookies": _env_flag("SECURE_COOKIES", "true"),
    "create_schema": _env_flag("CREATE_SCHEMA", "false"),
    "environment": os.getenv("ENVIRONMENT"),
}
