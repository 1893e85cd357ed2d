"""YAML config loading with env var expansion."""

import logging
import os
import re
from pathlib import Path

import yaml
from pydantic import ValidationError

from .models import BuildConfig

logger = logging.getLogger(__name__)

PROJECT_CONFIG = Path("inkwell.yaml")
USER_CONFIG = Path(".inkwell") / "config.yaml"


def config_candidates(cli_path: str | None = None) -> list[Path]:
    """Config files in the order they are consulted.

    An explicit CLI path is the only candidate and must exist; otherwise the
    project-local file wins over the user-global one.
    """
    if cli_path:
        path = Path(cli_path)
        if not path.is_file():
            raise ValueError(f"Config file not found: {cli_path}")
        return [path]
    return [PROJECT_CONFIG, Path.home() / USER_CONFIG]


def load_config(cli_path: str | None = None) -> BuildConfig:
    """Load config with resolution order: CLI > project-local > user-global > defaults."""
    for path in config_candidates(cli_path):
        if not path.is_file():
            continue
        raw = _read_yaml(path)
        if raw is None:
            continue
        try:
            config = BuildConfig.model_validate(_expand_env_vars(raw))
        except ValidationError as e:
            raise ValueError(f"Invalid config in {path}: {e}") from e
        logger.debug("loaded config from %s", path)
        return config
    return BuildConfig()


def _read_yaml(path: Path) -> object:
    try:
        with open(path, encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e


def _expand_env_vars(obj: object) -> object:
    """Recursively expand ${VAR} references in strings."""
    if isinstance(obj, str):
        return re.sub(r"\$\{(\w+)\}", lambda m: os.environ.get(m.group(1), ""), obj)
    elif isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


# Default YAML template for `inkwell config init`
DEFAULT_CONFIG_TEMPLATE = """\
# inkwell.yaml

# Content tree
content:
  root: "content"
  extensions: [".md", ".markdown"]
  talks_index: "talks.md"      # relative to root; null to disable
  # ignore_patterns: [.git, node_modules, __pycache__, .venv]

# Link resolution
links:
  base_url: "/"                # e.g. "https://example.org/" or "${SITE_URL}"
  validation: "strict"         # strict | warn | off
  check_local_targets: false   # require relative asset links to exist on disk

# Publication
publish: {}
  # as_of: 2016-06-01          # leave out posts dated after this day

workers: 4

# Logging
log_level: "info"              # debug | info | warn | error
log_format: "text"             # text | json
"""
