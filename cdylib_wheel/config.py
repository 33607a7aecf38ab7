"""Build configuration file.

Optional YAML file with defaults for a build::

    binding: pyo3
    interpreters:
      - python3.11
      - /opt/python/cp312/bin/python
    scripts:
      mytool: mymod:main

Command-line flags take precedence over the file.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from .errors import ConfigurationError
from .taggers.manifest_abi import DEFAULT_BINDING


@dataclass
class BuildConfig:
    """Settings read from the configuration file."""

    binding: str = DEFAULT_BINDING
    interpreters: Optional[List[str]] = None
    scripts: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_yaml(cls, config_file: Path) -> "BuildConfig":
        """Load a configuration file.

        Raises:
            ConfigurationError: If the file is unreadable, not YAML, or has
                values of the wrong type
        """
        try:
            with open(config_file) as f:
                data = yaml.safe_load(f)
        except OSError as e:
            raise ConfigurationError(f"Cannot read config file {config_file}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid config file {config_file}: {e}") from e

        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ConfigurationError(f"{config_file}: expected a mapping at the top level")

        unknown = set(data) - {"binding", "interpreters", "scripts"}
        if unknown:
            raise ConfigurationError(
                f"{config_file}: unknown keys: {', '.join(sorted(unknown))}"
            )

        config = cls()
        if "binding" in data:
            if not isinstance(data["binding"], str) or not data["binding"]:
                raise ConfigurationError(f"{config_file}: 'binding' must be a crate name")
            config.binding = data["binding"]

        if "interpreters" in data:
            interpreters = data["interpreters"]
            if not isinstance(interpreters, list) or not all(isinstance(i, str) for i in interpreters):
                raise ConfigurationError(f"{config_file}: 'interpreters' must be a list of paths")
            config.interpreters = interpreters

        if "scripts" in data:
            scripts = data["scripts"]
            if not isinstance(scripts, dict) or not all(
                isinstance(k, str) and isinstance(v, str) for k, v in scripts.items()
            ):
                raise ConfigurationError(
                    f"{config_file}: 'scripts' must map names to 'module:function'"
                )
            config.scripts = scripts

        return config
