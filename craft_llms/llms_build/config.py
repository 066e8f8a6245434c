import json
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple

import yaml
from mkdocs.utils import log

from craft_llms.errors import ConfigError

DEFAULT_DOCS_SUBPATHS = ("docs/docs/5.x", "docs/5.x")

# Environment variable -> BuildConfig field
ENV_KEYS = {
    "OUTPUT_DIR": "output_dir",
    "BASE_URL": "base_url",
    "DOCS_REPO": "docs_repo",
    "DOCS_DIR": "docs_dir",
    "INCLUDE_MAX_DEPTH": "include_max_depth",
    "DOCS_SYNC": "sync",
}

TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class BuildConfig:
    output_dir: str = "public"
    base_url: str = "https://craftcms.com/docs/5.x/"
    docs_repo: str = "https://github.com/craftcms/docs"
    docs_dir: str = ".cache/craftcms-docs"
    docs_subpaths: Tuple[str, ...] = DEFAULT_DOCS_SUBPATHS
    project_name: str = "Craft CMS Documentation"
    description: str = (
        "Craft CMS 5.x documentation covering installation, configuration, "
        "templating, and extension points."
    )
    index_title: str = "Craft CMS Documentation Index"
    full_filename: str = "llms-full.txt"
    index_filename: str = "llms.txt"
    include_max_depth: int = 5
    sync: bool = True

    @property
    def normalized_base_url(self) -> str:
        return self.base_url if self.base_url.endswith("/") else f"{self.base_url}/"

    def merge(self, values: Mapping[str, Any]) -> "BuildConfig":
        """Return a copy updated from ``values``; unknown keys are ignored."""
        known = {f.name for f in fields(self)}
        updates = {}
        for key, value in values.items():
            if key not in known:
                log.debug(f"[craft_llms] ignoring unknown config key {key!r}")
                continue
            try:
                updates[key] = FIELD_COERCERS.get(key, str)(value)
            except (TypeError, ValueError) as exc:
                raise ConfigError(f"Invalid value for {key!r}: {value!r}", key) from exc
        return replace(self, **updates)


def to_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in TRUTHY
    return bool(value)


def to_str_tuple(value) -> Tuple[str, ...]:
    if isinstance(value, str):
        value = value.split(",")
    return tuple(str(v).strip() for v in value if str(v).strip())


FIELD_COERCERS = {
    "include_max_depth": int,
    "sync": to_bool,
    "docs_subpaths": to_str_tuple,
}


def load_config_file(path: Path) -> dict:
    """Load a JSON or YAML config mapping; the suffix picks the parser."""
    if not path.exists():
        raise FileNotFoundError(f"craft_llms config not found at {path}")

    with path.open("r", encoding="utf-8") as f:
        if path.suffix.lower() in (".yml", ".yaml"):
            data = yaml.safe_load(f) or {}
        else:
            data = json.load(f)
    if not isinstance(data, dict):
        raise ConfigError(f"craft_llms config at {path} must be a mapping", str(path))
    log.debug(f"[craft_llms] config keys from {path}: {list(data.keys())}")
    return data


def config_from_env(env: Mapping[str, str]) -> dict:
    return {field_name: env[var] for var, field_name in ENV_KEYS.items() if env.get(var)}


def load_build_config(
    path: Optional[Path] = None, env: Optional[Mapping[str, str]] = None
) -> BuildConfig:
    """Defaults, then the optional config file, then environment variables."""
    env = os.environ if env is None else env
    config = BuildConfig()
    if path is not None:
        config = config.merge(load_config_file(Path(path)))
    return config.merge(config_from_env(env))
