"""
Loads and validates the digest declaration from config.yml.
Credentials (social cookies, LLM keys, email API keys) are loaded from the
environment / .env so they never live in the declaration file.
"""
import os
from typing import List, Literal, Optional, Union

import yaml
from dotenv import load_dotenv
from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    ValidationError,
    field_validator,
)


LLMProvider = Literal["google", "openai", "anthropic", "ollama"]
EmailProvider = Literal["resend", "smtp", "file"]


class ConfigError(Exception):
    """Base class for fatal configuration problems."""


class ConfigInvalid(ConfigError):
    """The declaration is missing, unreadable or violates the schema."""


class MissingSecret(ConfigError):
    """One or more required credentials are absent from the environment."""

    def __init__(self, names: List[str]):
        self.names = names
        super().__init__(f"Missing required secrets: {', '.join(names)}")


class Follow(BaseModel):
    """A followed account handle."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    username: str = Field(..., min_length=1)

    @field_validator("username")
    @classmethod
    def _strip_at(cls, value: str) -> str:
        value = value.strip().lstrip("@")
        if not value:
            raise ValueError("username must not be empty")
        return value


class User(BaseModel):
    """
    A digest recipient. `email` may be one address or several sharing one
    digest; the first is the identity used for state keys.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    email: List[EmailStr]
    context: str
    follows: List[Follow]

    @field_validator("email", mode="before")
    @classmethod
    def _as_list(cls, value):
        if isinstance(value, str):
            return [value]
        return value

    @field_validator("email")
    @classmethod
    def _not_empty(cls, value: List[str]) -> List[str]:
        if not value:
            raise ValueError("at least one email address is required")
        return value

    @property
    def primary_email(self) -> str:
        return self.email[0]


class LLMConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    provider: LLMProvider
    model: str = Field(..., min_length=1)


class Config(BaseModel):
    """Declarative digest configuration. Immutable once loaded."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    users: List[User]
    llm: LLMConfig
    prompt: Optional[str] = None

    @field_validator("prompt")
    @classmethod
    def _blank_prompt_is_default(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value


class Settings(BaseModel):
    """Runtime settings and secrets read from the environment."""
    model_config = ConfigDict(frozen=True)

    # Social source
    TWITTER_AUTH_TOKEN: Optional[str] = None
    TWITTER_CT0: Optional[str] = None
    FETCH_LIMIT: int = 20
    RECENCY_HOURS: int = 24

    # LLM
    GEMINI_API_KEY: Optional[str] = None
    OPENAI_API_KEY: Optional[str] = None
    ANTHROPIC_API_KEY: Optional[str] = None
    OLLAMA_BASE_URL: str = "http://localhost:11434"

    # Email
    EMAIL_PROVIDER: EmailProvider = "resend"
    EMAIL_FROM: str = "Bird Digest <noreply@example.com>"
    RESEND_API_KEY: Optional[str] = None
    EMAIL_SMTP_HOST: Optional[str] = None
    EMAIL_SMTP_PORT: int = 587
    EMAIL_USERNAME: Optional[str] = None
    EMAIL_PASSWORD: Optional[str] = None
    OUTPUT_DIR: str = "output"

    # Core
    DATABASE_PATH: str = "data/state.db"
    ENABLE_MANUAL_TRIGGER: bool = False
    LOG_LEVEL: str = "INFO"

    def llm_api_key(self, provider: str) -> Optional[str]:
        return {
            "google": self.GEMINI_API_KEY,
            "openai": self.OPENAI_API_KEY,
            "anthropic": self.ANTHROPIC_API_KEY,
        }.get(provider)

    def missing_secrets(self, provider: str) -> List[str]:
        """Names of every secret the given LLM provider and mailer need but lack."""
        missing = []
        if not self.TWITTER_AUTH_TOKEN:
            missing.append("TWITTER_AUTH_TOKEN")
        if not self.TWITTER_CT0:
            missing.append("TWITTER_CT0")

        llm_keys = {
            "google": "GEMINI_API_KEY",
            "openai": "OPENAI_API_KEY",
            "anthropic": "ANTHROPIC_API_KEY",
        }
        if provider in llm_keys and not self.llm_api_key(provider):
            missing.append(llm_keys[provider])

        if self.EMAIL_PROVIDER == "resend" and not self.RESEND_API_KEY:
            missing.append("RESEND_API_KEY")
        elif self.EMAIL_PROVIDER == "smtp":
            for name in ("EMAIL_SMTP_HOST", "EMAIL_USERNAME", "EMAIL_PASSWORD"):
                if not getattr(self, name):
                    missing.append(name)
        return missing

    def require_secrets(self, provider: str) -> None:
        missing = self.missing_secrets(provider)
        if missing:
            raise MissingSecret(missing)


def _bool(value: Union[str, bool, None]) -> bool:
    """Convert string or bool to boolean."""
    if isinstance(value, bool):
        return value
    return str(value).lower() in ("1", "true", "yes", "on")


def _get_config_path() -> str:
    """Get the path to config.yml, handling different working directories."""
    env_path = os.getenv("DIGEST_CONFIG")
    if env_path:
        return env_path

    # Try relative path first
    if os.path.exists('resources/config.yml'):
        return 'resources/config.yml'

    # Try from project root
    project_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
    config_path = os.path.join(project_root, 'resources', 'config.yml')
    if os.path.exists(config_path):
        return config_path

    raise ConfigInvalid("Cannot find resources/config.yml (set DIGEST_CONFIG to override)")


def _first_violation(error: ValidationError) -> str:
    """Render the first pydantic error as `path.to.field: reason`."""
    first = error.errors()[0]
    location = ".".join(str(part) for part in first["loc"]) or "<root>"
    return f"{location}: {first['msg']}"


def parse_config(data) -> Config:
    """Validate an already-parsed declaration."""
    if not isinstance(data, dict):
        raise ConfigInvalid("<root>: configuration must be a mapping")

    try:
        return Config.model_validate(data)
    except ValidationError as e:
        raise ConfigInvalid(_first_violation(e)) from e


def load_config(path: Optional[str] = None) -> Config:
    """Load and validate config.yml."""
    config_path = path or _get_config_path()

    try:
        with open(config_path, 'r', encoding='utf-8') as file:
            data = yaml.safe_load(file)
    except OSError as e:
        raise ConfigInvalid(f"Cannot read {config_path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigInvalid(f"Invalid YAML in {config_path}: {e}") from e

    return parse_config(data)


def load_settings() -> Settings:
    """Load runtime settings and secrets from .env and the environment."""
    load_dotenv()

    values = {}
    for name in Settings.model_fields:
        raw = os.getenv(name)
        if raw is not None and raw != "":
            values[name] = raw

    # Google's own SDK name for the key is accepted too
    if "GEMINI_API_KEY" not in values and os.getenv("GOOGLE_API_KEY"):
        values["GEMINI_API_KEY"] = os.getenv("GOOGLE_API_KEY")

    if "ENABLE_MANUAL_TRIGGER" in values:
        values["ENABLE_MANUAL_TRIGGER"] = _bool(values["ENABLE_MANUAL_TRIGGER"])

    try:
        return Settings(**values)
    except ValidationError as e:
        raise ConfigInvalid(_first_violation(e)) from e
