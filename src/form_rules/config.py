"""Engine settings.

Settings come from (lowest to highest precedence):
1. Defaults on EngineSettings
2. A YAML file (explicit path, or $FORM_RULES_CONFIG)
3. FORM_RULES_* environment variables (a local .env file is loaded first)
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

ENV_PREFIX = "FORM_RULES_"
CONFIG_PATH_ENV = "FORM_RULES_CONFIG"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class EngineSettings(BaseModel):
    """Tunable behavior of the evaluation cycle.

    Attributes:
        order_by_priority: Sort rules by descending priority before each pass.
            Off by default: rules run in list order and priority is metadata.
        max_settle_passes: Upper bound on cycles run back to back when rule
            actions change form values during a cycle.
        log_rule_timings: Log per-rule execution time at INFO level.
    """

    model_config = ConfigDict(extra="forbid")

    order_by_priority: bool = Field(
        default=False,
        description="Sort rules by descending priority (stable) before evaluation",
    )
    max_settle_passes: int = Field(
        default=10,
        ge=1,
        description="Maximum back-to-back cycles when actions change form values",
    )
    log_rule_timings: bool = Field(
        default=False,
        description="Log per-rule execution time at INFO level",
    )

    @field_validator("order_by_priority", "log_rule_timings", mode="before")
    @classmethod
    def parse_flag(cls, v: Any) -> Any:
        """Accept yes/no/on/off strings from YAML or the environment."""
        if isinstance(v, str):
            lowered = v.strip().lower()
            if lowered in _TRUE_VALUES:
                return True
            if lowered in _FALSE_VALUES:
                return False
        return v


def _env_overrides() -> Dict[str, str]:
    overrides = {}
    for name in EngineSettings.model_fields:
        env_value = os.getenv(f"{ENV_PREFIX}{name.upper()}")
        if env_value is not None:
            overrides[name] = env_value
    return overrides


def load_engine_settings(config_path: Optional[Path] = None) -> EngineSettings:
    """Load engine settings from YAML plus environment overrides.

    Args:
        config_path: Optional path to a settings YAML file. Falls back to
            $FORM_RULES_CONFIG; when neither is set only defaults and
            environment variables apply.

    Returns:
        Validated EngineSettings.

    Raises:
        ValueError: If the file exists but is not valid YAML or has invalid settings.
    """
    load_dotenv(find_dotenv(usecwd=True))

    data: Dict[str, Any] = {}
    if config_path is None and os.getenv(CONFIG_PATH_ENV):
        config_path = Path(os.environ[CONFIG_PATH_ENV])

    if config_path is not None:
        config_path = Path(config_path)
        if not config_path.exists():
            logger.debug(f"No engine settings found at {config_path}")
        else:
            try:
                with open(config_path, "r", encoding="utf-8") as f:
                    loaded = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in engine settings {config_path}: {e}")
            if loaded is None:
                logger.warning(f"Empty engine settings at {config_path}")
            elif not isinstance(loaded, dict):
                raise ValueError(f"Engine settings {config_path} must be a mapping")
            else:
                data.update(loaded)

    data.update(_env_overrides())

    try:
        settings = EngineSettings.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid engine settings: {e}")

    logger.debug(f"Engine settings: {settings.model_dump()}")
    return settings
