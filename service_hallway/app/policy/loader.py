"""
Loading of the proxy's access-policy document.
"""

from pathlib import Path
from typing import Union

import yaml
from pydantic import ValidationError

from shared.errors import ConfigurationError
from shared.logging import get_logger

from .models import PolicyDocument

logger = get_logger("hallway.policy.loader")


def load_policy_from_str(text: str) -> PolicyDocument:
    """Parse a policy document held in memory."""
    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigurationError("Policy document is not valid YAML", details={"error": str(e)}) from e

    if not isinstance(raw, dict):
        raise ConfigurationError("Policy document must be a mapping with a 'routes' list")

    try:
        return PolicyDocument.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError(
            "Policy document was malformed",
            details={"errors": e.errors(include_url=False, include_context=False)},
        ) from e


def load_policy_document(path: Union[str, Path]) -> PolicyDocument:
    """Read the proxy configuration file. Any failure is fatal."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(
            "Couldn't open policy document",
            details={"path": str(path), "error": str(e)},
        ) from e

    document = load_policy_from_str(text)
    logger.info("Policy document loaded", path=str(path), routes=len(document.routes))
    return document
