# -----------------------------------------------------------------------------
# /*
#  * Copyright (C) 2025 CodeStory
#  *
#  * This program is free software; you can redistribute it and/or modify
#  * it under the terms of the GNU General Public License as published by
#  * the Free Software Foundation; Version 2.
#  *
#  * This program is distributed in the hope that it will be useful,
#  * but WITHOUT ANY WARRANTY; without even the implied warranty of
#  * MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
#  * GNU General Public License for more details.
#  *
#  * You should have received a copy of the GNU General Public License
#  * along with this program; if not, you can contact us at support@codestory.build
#  */
# -----------------------------------------------------------------------------

"""
Where merges settings come from.

Highest priority first: command line options, ``--custom-config``, the
repository's ``mergesconfig.toml``, ``MERGES_*`` environment variables and
the user's global ``mergesconfig.toml``.

Config files take flat ``GlobalConfig`` keys (``max_workers = 8``) or the
sections below::

    [github]
    token = "..."
    api_url = "https://github.example.com/api/v3"
    timeout = 10
    remote = "upstream"

    [sync]
    parallel = true
    max_workers = 8
    conflict_memory = false

    [split]
    root_group = "misc"
    root_files_separate = false
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

import tomllib
from loguru import logger
from pydantic import ValidationError

from merges.constants import CONFIG_FILENAME, ENV_APP_PREFIX, GLOBAL_CONFIG_FILE
from merges.context import GlobalConfig
from merges.core.exceptions import ConfigurationError

# section -> {key inside the section: GlobalConfig field}
SECTIONS = {
    "github": {
        "token": "github_token",
        "api_url": "github_api_url",
        "timeout": "request_timeout",
        "remote": "remote_name",
    },
    "sync": {
        "parallel": "parallel",
        "max_workers": "max_workers",
        "conflict_memory": "conflict_memory",
    },
    "split": {
        "root_group": "root_group_name",
        "root_files_separate": "root_files_separate",
    },
}

# never written to the debug log
_SECRET_FIELDS = {"github_token"}


@dataclass
class ConfigSource:
    name: str
    values: dict = field(default_factory=dict)

    def describe(self) -> dict:
        return {
            key: "***" if key in _SECRET_FIELDS else value
            for key, value in self.values.items()
        }


class ConfigLoader:
    """Builds the ``GlobalConfig`` for one run from every source of settings."""

    def __init__(
        self,
        repo_path: Path,
        custom_config_path: Path | None = None,
        global_config_path: Path = GLOBAL_CONFIG_FILE,
        env_prefix: str = ENV_APP_PREFIX,
    ):
        self.repo_path = Path(repo_path)
        self.custom_config_path = custom_config_path
        self.global_config_path = global_config_path
        self.env_prefix = env_prefix

    def load(self, input_args: dict) -> tuple[GlobalConfig, list[str], bool]:
        """
        Returns the config, the names of the sources that contributed to it
        and whether any field fell back to its default.
        """
        values: dict = {}
        origin: dict[str, str] = {}
        used = []
        for source in self.sources(input_args):
            logger.debug(f"{source.name}: {source.describe()}")
            contributions = source.values.keys() - values.keys()
            if not contributions:
                continue
            used.append(source.name)
            for key in contributions:
                values[key] = source.values[key]
                origin[key] = source.name

        try:
            config = GlobalConfig.model_validate(values)
        except ValidationError as e:
            raise ConfigurationError(
                "Invalid configuration", self._explain(e, origin)
            ) from e

        return config, used, len(values) < len(GlobalConfig.model_fields)

    def sources(self, input_args: dict) -> list[ConfigSource]:
        sources = [
            ConfigSource(
                "Input Args",
                {k: v for k, v in input_args.items() if v is not None},
            )
        ]
        if self.custom_config_path is not None:
            if not self.custom_config_path.exists():
                raise ConfigurationError(
                    f"Custom config file not found: {self.custom_config_path}"
                )
            sources.append(
                ConfigSource("Custom Config", self.read_toml(self.custom_config_path))
            )
        sources.append(
            ConfigSource("Local Config", self.read_toml(self.repo_path / CONFIG_FILENAME))
        )
        sources.append(ConfigSource("Environment Variables", self.read_env()))
        sources.append(
            ConfigSource("Global Config", self.read_toml(self.global_config_path))
        )
        return sources

    def read_toml(self, path: Path) -> dict:
        """Settings from a config file; a missing or unreadable file contributes nothing."""
        if not path.exists():
            logger.debug(f"{path} does not exist")
            return {}

        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            logger.warning(f"Failed to load {path}: {e}")
            return {}

        return flatten_settings(data, str(path))

    def read_env(self) -> dict:
        """``MERGES_<FIELD>`` variables; other variables with the prefix are left alone."""
        prefix = self.env_prefix.lower()
        data = {}
        for name, value in os.environ.items():
            key = name.lower()
            if key.startswith(prefix) and key[len(prefix) :] in GlobalConfig.model_fields:
                data[key[len(prefix) :]] = value
        return data

    @staticmethod
    def _explain(error: ValidationError, origin: dict[str, str]) -> str:
        lines = []
        for item in error.errors():
            key = str(item["loc"][0]) if item["loc"] else ""
            lines.append(f"{key} (from {origin.get(key, 'defaults')}): {item['msg']}")
        return "\n".join(lines)


def flatten_settings(data: dict, origin: str) -> dict:
    """Map flat keys and ``[section]`` tables onto ``GlobalConfig`` field names."""
    flat = {}
    for key, value in data.items():
        if key in SECTIONS and isinstance(value, dict):
            for sub_key, sub_value in value.items():
                target = SECTIONS[key].get(sub_key)
                if target is None:
                    logger.warning(f"{origin}: unknown setting [{key}] {sub_key}")
                    continue
                flat[target] = sub_value
        elif key in GlobalConfig.model_fields:
            flat[key] = value
        else:
            logger.warning(f"{origin}: unknown setting {key}")
    return flat
