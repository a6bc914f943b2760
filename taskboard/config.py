# Taskboard configuration
# Override via taskboard.yaml, --config, or TASKBOARD_* environment variables.

import json
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

import yaml

CONFIG_PATH = Path(__file__).parent.parent / "taskboard.yaml"

BACKENDS = ("memory", "remote")

ENV_OVERRIDES = {
    "backend": "TASKBOARD_BACKEND",
    "api_url": "TASKBOARD_API_URL",
    "project_id": "TASKBOARD_PROJECT_ID",
    "public_key": "TASKBOARD_PUBLIC_KEY",
    "seed_path": "TASKBOARD_SEED",
    "log_level": "TASKBOARD_LOG_LEVEL",
}


class ConfigError(Exception):
    """Raised when configuration is invalid or incomplete."""
    pass


@dataclass
class Config:
    """Runtime configuration for the task board server."""

    # Data backend: "memory" (in-process) or "remote" (record API over HTTP)
    backend: str = "memory"

    # Remote record API
    api_url: str = ""
    project_id: str = ""
    public_key: str = ""
    request_timeout: float = 10.0

    # Memory backend
    latency_ms: int = 0
    seed_path: str = ""            # YAML/JSON with "tasks" and "categories" lists

    # Server
    host: str = "127.0.0.1"
    port: int = 3000
    log_level: str = "INFO"

    def apply_env(self):
        """Environment variables win over file values."""
        for attr, env in ENV_OVERRIDES.items():
            value = os.environ.get(env)
            if value:
                setattr(self, attr, value)

    def validate(self):
        self.backend = self.backend.strip().lower()
        if self.backend not in BACKENDS:
            raise ConfigError(
                f"Unknown backend '{self.backend}'. Available: {', '.join(BACKENDS)}"
            )
        if self.backend == "remote" and not self.api_url:
            raise ConfigError(
                "Remote backend needs api_url.\n"
                "Set it in taskboard.yaml or:  export TASKBOARD_API_URL=https://..."
            )
        self.log_level = self.log_level.upper()

    def load_seed(self) -> dict:
        """Read seed data for the memory backend. Missing path means no seed."""
        if not self.seed_path:
            return {}
        path = Path(self.seed_path).expanduser()
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigError(f"Cannot read seed file {path}: {e}")
        try:
            if path.suffix == ".json":
                data = json.loads(text)
            else:
                data = yaml.safe_load(text)
        except (ValueError, yaml.YAMLError) as e:
            raise ConfigError(f"Malformed seed file {path}: {e}")
        return data or {}

    @classmethod
    def load(cls, path: Optional[str] = None) -> "Config":
        """Load config from YAML, falling back to defaults when the file is absent."""
        cfg_path = Path(path or os.environ.get("TASKBOARD_CONFIG") or CONFIG_PATH)
        if cfg_path.exists():
            try:
                with open(cfg_path, "r") as f:
                    data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Malformed config file {cfg_path}: {e}")
            if not isinstance(data, dict):
                raise ConfigError(f"Config file {cfg_path} must hold a mapping")
            known = {f.name for f in fields(cls)}
            cfg = cls(**{k: v for k, v in data.items() if k in known})
        else:
            cfg = cls()
        cfg.apply_env()
        cfg.validate()
        return cfg
