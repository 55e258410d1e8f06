"""
Environment profiles for retailnorm configuration.

This module provides YAML-based configuration for different runs
(e.g. a local sample and the full export) with automatic store and
normalizer instantiation.

Example retailnorm.yaml:
    default_profile: dev

    profiles:
      dev:
        store:
          path: ./normalized
        source:
          timestamp_format: "%m/%d/%Y %H:%M"
          encoding: latin-1

      strict:
        store:
          path: ${oc.env:RETAILNORM_OUTPUT}
        policy:
          description_tie_break: lexical
          on_unmapped_country: error
        sentinels:
          countries:
            Israel: -1
            Iceland: -10
          default: -99
"""

from __future__ import annotations

import os
import typing as T
from pathlib import Path

from loguru import logger
from omegaconf import DictConfig, OmegaConf
from omegaconf.errors import InterpolationKeyError
from pydantic import BaseModel, Field, ValidationError

import retailnorm.errors as errors
from retailnorm.policies import ResolutionPolicy
from retailnorm.repair import CountrySentinels

if T.TYPE_CHECKING:
    import retailnorm.core as core
    import retailnorm.stores as stores


class LocalStoreConfig(BaseModel, frozen=True):
    """Configuration for local filesystem store."""

    KIND: T.Literal["local"] = "local"
    path: str = "./normalized"

    def create(self) -> stores.LocalStore:
        """Create store instance from this config."""
        import retailnorm.stores as stores

        return stores.LocalStore(path=self.path)


class SourceConfig(BaseModel, frozen=True):
    """How to read the transaction export."""

    timestamp_format: str | None = None
    encoding: str = "utf8"


class ProfileConfig(BaseModel, frozen=True):
    """Configuration for a single profile."""

    store: LocalStoreConfig = Field(default_factory=LocalStoreConfig)
    source: SourceConfig = Field(default_factory=SourceConfig)
    policy: ResolutionPolicy = Field(default_factory=ResolutionPolicy)
    sentinels: CountrySentinels = Field(default_factory=CountrySentinels)

    def create_normalizer(self) -> core.Normalizer:
        """Create a Normalizer configured by this profile."""
        import retailnorm.core as core

        return core.Normalizer(
            sentinels=self.sentinels,
            policy=self.policy,
            timestamp_format=self.source.timestamp_format,
        )


class RetailnormConfig(BaseModel, frozen=True):
    """Root configuration from retailnorm.yaml."""

    default_profile: str = "dev"
    profiles: dict[str, ProfileConfig]


# =============================================================================
# Config Loading
# =============================================================================

CONFIG_FILENAME = "retailnorm.yaml"
PROFILE_ENV_VAR = "RETAILNORM_PROFILE"


def load_config(config_path: Path | None = None) -> RetailnormConfig | None:
    """
    Load and validate retailnorm.yaml configuration.

    Args:
        config_path: Path to config file. If None, searches for
            retailnorm.yaml in current directory.

    Returns:
        Validated RetailnormConfig, or None if no config file exists.

    Raises:
        ConfigError: If config file is invalid or env vars missing.
    """
    if config_path is None:
        config_path = Path(CONFIG_FILENAME)

    if not config_path.exists():
        return None

    # Load YAML with OmegaConf (handles ${oc.env:VAR} interpolation)
    try:
        loaded = OmegaConf.load(config_path)
        if not isinstance(loaded, DictConfig):
            raise errors.ConfigError(
                f"Expected YAML mapping in {config_path}, got list or scalar",
                hint="retailnorm.yaml must be a YAML mapping with a profiles key.",
            )
        omega_conf: DictConfig = loaded
    except errors.ConfigError:
        raise
    except Exception as e:
        raise errors.ConfigError(
            f"Failed to parse {config_path}: {e}",
            hint="Check that your retailnorm.yaml is valid YAML syntax.",
        ) from e

    try:
        OmegaConf.resolve(omega_conf)
    except InterpolationKeyError as e:
        raise errors.ConfigError(
            f"Failed to resolve config variables: {e}",
            hint="Set the missing environment variable and try again.",
        ) from e
    except Exception as e:
        raise errors.ConfigError(f"Failed to resolve config variables: {e}") from e

    config_dict = OmegaConf.to_container(omega_conf, resolve=True)

    try:
        return RetailnormConfig.model_validate(config_dict)
    except ValidationError as e:
        error_lines = []
        for err in e.errors():
            loc = ".".join(str(x) for x in err["loc"])
            msg = err["msg"]
            error_lines.append(f"  {loc}: {msg}")

        raise errors.ConfigError(
            f"Invalid configuration in {config_path}:\n" + "\n".join(error_lines),
            hint="Check the retailnorm.yaml schema and fix the validation errors.",
        ) from e


def load_profile(
    name: str | None = None,
    config_path: Path | None = None,
) -> ProfileConfig:
    """
    Load a profile from retailnorm.yaml.

    Profile resolution order:
    1. Explicit `name` parameter (highest priority)
    2. RETAILNORM_PROFILE environment variable
    3. default_profile from retailnorm.yaml

    When no config file exists and neither a profile name nor a config
    path was given, the built-in defaults are returned.

    Args:
        name: Profile name. If None, uses env var or config default.
        config_path: Path to config file. If None, uses retailnorm.yaml.

    Returns:
        ProfileConfig with validated settings.

    Raises:
        ConfigError: If an explicitly requested config or profile is missing,
            or the config is invalid.
    """
    config = load_config(config_path)

    if config is None:
        if name is None and config_path is None:
            if PROFILE_ENV_VAR in os.environ:
                logger.debug(
                    f"Ignoring {PROFILE_ENV_VAR}='{os.environ[PROFILE_ENV_VAR]}': "
                    f"no {CONFIG_FILENAME} found, using built-in defaults"
                )
            return ProfileConfig()
        raise errors.ConfigError(
            f"No {config_path or CONFIG_FILENAME} found.",
            hint="Create retailnorm.yaml or drop the --profile/--config options.",
        )

    if name is None:
        name = os.environ.get(PROFILE_ENV_VAR, config.default_profile)

    if name not in config.profiles:
        available = list(config.profiles.keys())
        available_str = ", ".join(
            f"{p}{' (default)' if p == config.default_profile else ''}"
            for p in available
        )

        raise errors.ConfigError(
            f"Profile '{name}' not found.\n\nAvailable profiles: {available_str}",
            hint=(
                f"Use one of the available profiles: retailnorm run --profile {available[0]}"
                if available
                else "Add a profile under the profiles key."
            ),
        )

    logger.debug(f"Using profile '{name}'")
    return config.profiles[name]
