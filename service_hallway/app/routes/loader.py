"""
Loading of the hallway's own configuration file.
"""

import tomllib
from pathlib import Path
from typing import Union

from pydantic import ValidationError

from shared.errors import ConfigurationError
from shared.logging import get_logger

from .models import HallwayConfig

logger = get_logger("hallway.routes.loader")


def load_config_from_str(text: str) -> HallwayConfig:
    try:
        raw = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError("Config is not valid TOML", details={"error": str(e)}) from e

    try:
        return HallwayConfig.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError(
            "Config can't be parsed",
            details={"errors": e.errors(include_url=False, include_context=False)},
        ) from e


def load_hallway_config(path: Union[str, Path]) -> HallwayConfig:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(
            "Config can't be read",
            details={"path": str(path), "error": str(e)},
        ) from e

    config = load_config_from_str(text)
    logger.info(
        "Hallway config loaded",
        path=str(path),
        domain=config.domain.name,
        routes=len(config.routes),
    )
    return config
