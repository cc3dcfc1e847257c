"""
Runtime configuration.

ExerciserConfig carries the flags that shape a single invocation.
LoggingConfig is handed to the dispatcher at startup and configures only the
package logger, never the process wide root logger.
"""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from typing import Mapping, TextIO

DEFAULT_BASE_URL = "http://192.168.100.2/MAAS"

ENV_BASE_URL = "MAAS_EXERCISER_BASE_URL"
ENV_CREDS = "MAAS_EXERCISER_CREDS"

PACKAGE_LOGGER = "maas_exerciser"


@dataclass(frozen=True)
class ExerciserConfig:
    """
    Exerciser configuration.

    base_url
    Root of the MAAS service, the API lives under base_url/api/2.0/.

    api_key
    OAuth credential, consumer_key:token_key:token_secret.

    read_direct
    File workflows: add-file reads the whole source into memory instead of
    streaming it, read-file fetches by name instead of listing by prefix.

    debug
    Log at debug level.

    parent
    Parent machine hostname for create-device and container.
    """

    base_url: str = DEFAULT_BASE_URL
    api_key: str = ""
    read_direct: bool = False
    debug: bool = False
    parent: str = ""

    @classmethod
    def defaults_from_env(cls, environ: Mapping[str, str] | None = None) -> ExerciserConfig:
        """Defaults with base_url and api_key taken from the environment when set."""
        env = os.environ if environ is None else environ
        return cls(
            base_url=env.get(ENV_BASE_URL, DEFAULT_BASE_URL),
            api_key=env.get(ENV_CREDS, ""),
        )


@dataclass(frozen=True)
class LoggingConfig:
    """
    Logging configuration.

    level
    Level for the package logger.

    fmt
    Format for the stream handler.

    stream
    Destination of log lines. None means whatever sys.stderr is when the
    config is applied, so log lines never mix with workflow output.
    """

    level: int = logging.INFO
    fmt: str = "%(asctime)s %(levelname)s %(name)s %(message)s"
    stream: TextIO | None = None

    @classmethod
    def for_config(cls, config: ExerciserConfig) -> LoggingConfig:
        return cls(level=logging.DEBUG if config.debug else logging.INFO)

    def apply(self, logger_name: str = PACKAGE_LOGGER) -> logging.Logger:
        """
        Configure the named logger and return it.

        Applying twice replaces the handler installed the first time.
        """
        logger = logging.getLogger(logger_name)
        logger.setLevel(self.level)
        for handler in list(logger.handlers):
            if getattr(handler, "_maas_exerciser", False):
                logger.removeHandler(handler)
        handler = logging.StreamHandler(self.stream if self.stream is not None else sys.stderr)
        handler.setFormatter(logging.Formatter(self.fmt))
        handler._maas_exerciser = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
        logger.propagate = False
        return logger
