"""Container hook input.

The runtime writes the container state as one line of JSON to stdin, e.g.

    {"annotations": {"reverse-proxy": "shop.example.com:backend:8080"}, "bundle": "/run/ctr/abc"}

and the bundle's ``config.json`` carries the container hostname.
"""
from __future__ import annotations

import json
import os
from typing import TextIO

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError

from .routes import ValidationError


class HookState(BaseModel):
    model_config = ConfigDict(extra="ignore")

    annotations: dict[str, str] = Field(default_factory=dict)
    bundle: str | None = None

    def annotation(self, key: str) -> str:
        return self.annotations.get(key, "")


def read_state(stream: TextIO) -> HookState:
    line = stream.readline().strip()
    if not line:
        return HookState()
    try:
        return HookState.model_validate(json.loads(line))
    except (ValueError, PydanticValidationError) as e:
        raise ValidationError(f"Hook state on stdin is not valid JSON: {e}") from e


def read_bundle_hostname(bundle: str | None) -> str | None:
    """Hostname from ``<bundle>/config.json``, or None when unavailable."""
    if not bundle:
        return None
    path = os.path.join(bundle, "config.json")
    try:
        with open(path, encoding="utf-8") as f:
            config = json.load(f)
    except FileNotFoundError:
        return None
    except ValueError as e:
        raise ValidationError(f"Bundle config {path} is not valid JSON: {e}") from e
    hostname = config.get("hostname") if isinstance(config, dict) else None
    return hostname or None
