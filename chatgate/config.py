"""
Backend configuration: the Gemini config file, environment flags and
enterprise endpoints.
"""
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from .errors import ConfigNotFoundError, ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_DIR_NAME = ".chatgate"
GEMINI_CONFIG_FILE = "gemini_config.json"

# Environment flag that routes requests to the developer backend
USE_SENDMESSAGE_ENV = "CHATGATE_USE_SENDMESSAGE"
EXECUTION_ENV = "AWS_EXECUTION_ENV"
ENDPOINT_URL_ENV = "CHATGATE_ENDPOINT_URL"
REGION_ENV = "CHATGATE_REGION"


class GeminiConfig(BaseModel):
    """
    Configuration for the Gemini REST backend.
    """
    api_key: str = Field(..., min_length=1)
    model: str = Field(default="gemini-2.0-flash", min_length=1)
    temperature: float = Field(default=0.7, ge=0.0, le=1.0)

    @field_validator("api_key", "model")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


def get_config_path() -> Path:
    """
    Path of the Gemini configuration file under the user's home directory.
    """
    return Path.home() / CONFIG_DIR_NAME / GEMINI_CONFIG_FILE


def config_exists(path: Optional[Path] = None) -> bool:
    return (path or get_config_path()).exists()


def load_config(path: Optional[Path] = None) -> GeminiConfig:
    """
    Load and validate the Gemini configuration file.

    Args:
        path (Path, optional): Override of the well-known config path.

    Returns:
        GeminiConfig: The validated configuration.

    Raises:
        ConfigNotFoundError: If the file does not exist.
        ConfigurationError: If the file cannot be read, is not valid JSON,
                            or a field is missing or out of range.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        logger.error(f"Gemini configuration file not found at {config_path}")
        raise ConfigNotFoundError(f"Gemini configuration file not found at {config_path}", "gemini")

    try:
        raw = config_path.read_text(encoding="utf-8")
    except OSError as e:
        logger.error(f"Failed to read Gemini configuration file: {e}")
        raise ConfigurationError(f"Failed to read Gemini configuration file: {e}", "gemini") from e

    try:
        config = GeminiConfig.model_validate(json.loads(raw))
    except (json.JSONDecodeError, ValidationError) as e:
        logger.error(f"Invalid Gemini configuration format: {e}")
        raise ConfigurationError(f"Invalid Gemini configuration format: {e}", "gemini") from e

    logger.info(f"Gemini configuration loaded. Using model: {config.model}")
    logger.debug(f"Gemini configuration: model={config.model}, temperature={config.temperature}")
    return config


# =============================================================================
# Execution Environment
# =============================================================================

def in_cloudshell() -> bool:
    """
    Whether the process runs inside the CloudShell sandboxed CLI environment.
    """
    return os.environ.get(EXECUTION_ENV, "").strip().lower() == "cloudshell"


def use_sendmessage() -> bool:
    return bool(os.environ.get(USE_SENDMESSAGE_ENV, ""))


@dataclass(frozen=True)
class Endpoint:
    """
    Network endpoint of an enterprise backend.
    """
    url: str
    region: str

    DEFAULT_REGION = "us-east-1"
    ASSISTANT_URL = "https://codewhisperer.us-east-1.amazonaws.com"
    DEVELOPER_URL = "https://q.us-east-1.amazonaws.com"

    @classmethod
    def load_assistant(cls) -> "Endpoint":
        return cls._load(cls.ASSISTANT_URL)

    @classmethod
    def load_developer(cls) -> "Endpoint":
        return cls._load(cls.DEVELOPER_URL)

    @classmethod
    def _load(cls, default_url: str) -> "Endpoint":
        url = os.environ.get(ENDPOINT_URL_ENV) or default_url
        region = os.environ.get(REGION_ENV) or cls.DEFAULT_REGION
        return cls(url=url, region=region)
