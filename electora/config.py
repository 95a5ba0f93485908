# electora/config.py
# Central place for settings and constants
import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List

from dotenv import load_dotenv

# Load environment variables
load_dotenv(dotenv_path=os.path.join(os.path.dirname(__file__), "../.env"))

DEFAULT_ORIGINS = [
    "http://localhost:3000",  # For Create React App
    "http://localhost:5173",  # For Vite
    "http://localhost:8080",
]

MANAGER_ROLE = "election-manager"
VOTER_ROLE = "voter"

MIN_PASSWORD_LENGTH = 6
MIN_CANDIDATES_PER_CATEGORY = 2


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: List[str]) -> List[str]:
    value = os.getenv(name)
    if not value:
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class Settings:
    # In production, use secure, environment-variable-based secrets
    secret_key: str = "a_very_secret_key_for_dev_only"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24
    allowed_origins: List[str] = field(default_factory=lambda: list(DEFAULT_ORIGINS))
    log_level: str = "INFO"
    seed_demo_data: bool = True
    strict_status_transitions: bool = True

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            secret_key=os.getenv("SECRET_KEY", cls.secret_key),
            algorithm=os.getenv("JWT_ALGORITHM", cls.algorithm),
            access_token_expire_minutes=int(
                os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", cls.access_token_expire_minutes)
            ),
            allowed_origins=_env_list("ELECTORA_ALLOWED_ORIGINS", DEFAULT_ORIGINS),
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
            seed_demo_data=_env_bool("ELECTORA_SEED_DEMO_DATA", True),
            strict_status_transitions=_env_bool("ELECTORA_STRICT_STATUS_TRANSITIONS", True),
        )


@lru_cache()
def get_settings() -> Settings:
    return Settings.from_env()
