"""
Command line entry point.

This is the composition layer of the system.
It parses flags into ExerciserConfig, builds the resource client and the
dispatcher, runs exactly one action and maps the outcome to an exit status.

Exit status
0 on success, and for an unknown action
1 when the workflow fails
2 when argparse rejects the command line
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Callable, Sequence, TextIO

from maas_exerciser.client.base import ResourceClient
from maas_exerciser.client.http import MaasHttpClient
from maas_exerciser.config import ExerciserConfig, LoggingConfig
from maas_exerciser.core.errors import ExerciserError
from maas_exerciser.workflow.dispatcher import ActionDispatcher
from maas_exerciser.workflow.reporter import DiagnosticReporter

ClientFactory = Callable[[ExerciserConfig], ResourceClient]

_logger = logging.getLogger(__name__)


def _parse_args(args: Sequence[str], defaults: ExerciserConfig) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="maas-exerciser",
        description="Exercise a MAAS 2.0 service, one action per run.",
    )
    parser.add_argument("--base-url", default=defaults.base_url, help="MAAS to test")
    parser.add_argument("--creds", default=defaults.api_key, help="MAAS OAuth API key")
    parser.add_argument("--parent", default="", help="parent machine hostname")
    parser.add_argument(
        "--read",
        action="store_true",
        help="add-file reads the file first, read-file fetches it directly",
    )
    parser.add_argument("--debug", action="store_true", help="log at debug level")
    parser.add_argument("action", nargs="?", default="", help="action to run, empty to inspect")
    parser.add_argument("args", nargs="*", help="action arguments")
    # flags may follow the action, e.g. "start node1 jammy --debug"
    return parser.parse_intermixed_args(args)


def build_config(args: Sequence[str], defaults: ExerciserConfig | None = None) -> tuple[ExerciserConfig, str, list[str]]:
    """Return the config, the action and its positional arguments."""
    parsed = _parse_args(args, defaults or ExerciserConfig.defaults_from_env())
    config = ExerciserConfig(
        base_url=parsed.base_url,
        api_key=parsed.creds,
        read_direct=parsed.read,
        debug=parsed.debug,
        parent=parsed.parent,
    )
    return config, parsed.action, list(parsed.args)


def http_client(config: ExerciserConfig) -> ResourceClient:
    return MaasHttpClient(base_url=config.base_url, api_key=config.api_key)


def main(
    args: Sequence[str],
    *,
    client_factory: ClientFactory = http_client,
    out: TextIO | None = None,
    log_stream: TextIO | None = None,
) -> int:
    config, action, action_args = build_config(args)
    stream = out if out is not None else sys.stdout

    logging_config = LoggingConfig.for_config(config)
    if log_stream is not None:
        logging_config = LoggingConfig(level=logging_config.level, stream=log_stream)

    try:
        client = client_factory(config)
    except ExerciserError as exc:
        DiagnosticReporter(stream).report(exc.annotate("building resource client"))
        return 1

    dispatcher = ActionDispatcher(
        client,
        config,
        logging_config=logging_config,
        out=stream,
    )
    try:
        dispatcher.dispatch(action, action_args)
    except ExerciserError:
        _logger.debug("action %r failed", action or "inspect")
        return 1
    return 0


def run() -> None:
    sys.exit(main(sys.argv[1:]))
