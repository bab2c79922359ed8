from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

from pydantic import ValidationError

from memwatch.core.config.models import MemwatchConfig
from memwatch.core.errors import ConfigError


def _read_json(path: str) -> Dict[str, Any]:
    if not os.path.exists(path):
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


@dataclass(frozen=True)
class ConfigPaths:
    config_dir: str = "config"

    @property
    def main(self) -> str:
        return os.path.join(self.config_dir, "memwatch.json")


class ConfigLoader:
    def __init__(self, paths: Optional[ConfigPaths] = None):
        self.paths = paths or ConfigPaths()

    def load_raw(self, path: Optional[str] = None) -> Dict[str, Any]:
        path = path or self.paths.main
        try:
            data = _read_json(path)
        except ValueError as e:
            raise ConfigError("Config file is not valid JSON.", path=path, error=str(e)) from e
        except OSError as e:
            raise ConfigError("Config file could not be read.", path=path, error=str(e)) from e
        if not isinstance(data, dict):
            raise ConfigError("Config file must contain a JSON object.", path=path)
        return data

    def load(self, path: Optional[str] = None) -> MemwatchConfig:
        path = path or self.paths.main
        raw = self.load_raw(path)
        try:
            return MemwatchConfig.model_validate(raw)
        except ValidationError as e:
            errors = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
            raise ConfigError("Config file failed validation.", path=path, errors=errors) from e


def load_config(path: Optional[str] = None) -> MemwatchConfig:
    """Load `config/memwatch.json` (or `path`); a missing file yields all defaults."""
    return ConfigLoader().load(path)
