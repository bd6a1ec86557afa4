"""Module for configuration variables with defaults that are overridable by a file."""

from __future__ import annotations

from configparser import ConfigParser, SectionProxy
from dataclasses import dataclass, field
import os

from gemstonefs.logger import log


@dataclass
class LimitsConfig:
    """
    Response size ceilings for remote queries.

    The remote side truncates printed results at these lengths, so they should be
    generous enough for large dictionaries and classes.
    """

    query_limit: int = 65525
    symbol_list_limit: int = 65525
    fileout_limit: int = 1024 * 1024
    evaluate_limit: int = 1024

    @staticmethod
    def load(section: SectionProxy) -> LimitsConfig:
        """Load overridden variables from a section within a config file."""
        config = LimitsConfig()

        config.query_limit = section.getint("query_limit", fallback=config.query_limit)
        config.symbol_list_limit = section.getint(
            "symbol_list_limit", fallback=config.symbol_list_limit
        )
        config.fileout_limit = section.getint(
            "fileout_limit", fallback=config.fileout_limit
        )
        config.evaluate_limit = section.getint(
            "evaluate_limit", fallback=config.evaluate_limit
        )

        return config


@dataclass
class WorkspaceConfig:
    """Configuration variables related to the editor workspace file."""

    path: str = os.path.expanduser("~/.gemstonefs/gemstone.code-workspace")

    @staticmethod
    def load(section: SectionProxy) -> WorkspaceConfig:
        """Load overridden variables from a section within a config file."""
        config = WorkspaceConfig()

        config.path = os.path.expanduser(section.get("path", fallback=config.path))

        return config


@dataclass
class Config:
    """Configuration variables."""

    limits: LimitsConfig = field(default_factory=LimitsConfig)
    workspace: WorkspaceConfig = field(default_factory=WorkspaceConfig)

    @staticmethod
    def load(filename: str) -> Config:
        """Load overridden configuration variables from a config file."""
        parser = ConfigParser()

        config = Config()

        try:
            with open(filename, "r") as f:
                parser.read_string(f.read(), filename)

            if "limits" in parser:
                config.limits = LimitsConfig.load(parser["limits"])
            if "workspace" in parser:
                config.workspace = WorkspaceConfig.load(parser["workspace"])
        except FileNotFoundError:
            log.info(f"no config file at {filename}")
        except Exception as e:
            # An unreadable config file is not considered a fatal error since we can
            # fall back to defaults.
            log.error(f"failed to read config file {filename}: {e}")
        else:
            log.info(f"loaded config: {config}")

        return config
