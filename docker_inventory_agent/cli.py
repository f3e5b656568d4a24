"""Command-line interface for docker-inventory-agent."""

import argparse
import json
import logging
import signal
import sys
from datetime import datetime, timezone

import requests
from docker.errors import DockerException

from . import __version__
from . import config as keys
from .agent import DockerAgent
from .config import DEFAULT_CONFIG_FILE, AgentConfig
from .errors import ConfigurationError, EngineUnavailable
from .log import parse_level, setup_logging
from .models import RunOptions
from .sender import ResultsSender, StatusCode

logger = logging.getLogger(__name__)

COMMAND_SEPARATOR = ";"


def _signal_handler(signum, frame):
    """Handle interrupt signals gracefully by raising KeyboardInterrupt."""
    raise KeyboardInterrupt()


def parse_startup_command(value):
    """Split a ``-w`` value on semicolons into a command list.

    Examples:
        "sleep;infinity" -> ["sleep", "infinity"]
        "" -> []
    """
    if not value:
        return []
    return [part.strip() for part in value.split(COMMAND_SEPARATOR) if part.strip()]


def _write_json_report(projects, filename):
    output_data = {
        "version": __version__,
        "inspection_date": datetime.now(timezone.utc).isoformat(),
        "projects": [project.to_dict() for project in projects],
    }
    with open(filename, "w", encoding="utf-8") as f:
        f.write(json.dumps(output_data, indent=2))


class _ReportingSender:
    """Writes the JSON report before handing projects to the real sender."""

    def __init__(self, sender, filename):
        self.sender = sender
        self.filename = filename

    def send(self, projects):
        _write_json_report(projects, self.filename)
        logger.info(f"JSON output written to: {self.filename}")
        return self.sender.send(projects)


def run_agent(config, options, json_output=None, agent_factory=DockerAgent):
    """Run one inspection and translate the result into a status code.

    A server failure is reported as success when ``failOnError`` is false.

    Args:
        config: AgentConfig
        options: RunOptions
        json_output: Optional path of a JSON report of all inventories
        agent_factory: Callable building the agent

    Returns:
        StatusCode
    """
    fail_on_error = config.get_bool(keys.FAIL_ON_ERROR, True)
    sender = ResultsSender(config)
    if json_output:
        sender = _ReportingSender(sender, json_output)

    try:
        agent = agent_factory(config, options, sender=sender)
        status = agent.send_request()
    except EngineUnavailable as e:
        logger.error(str(e))
        return StatusCode.CLIENT_FAILURE
    except (ConfigurationError, DockerException, requests.RequestException) as e:
        logger.error(f"Error running agent: {e}")
        return StatusCode.CLIENT_FAILURE

    if status == StatusCode.SERVER_FAILURE and not fail_on_error:
        return StatusCode.SUCCESS
    return status


def build_parser():
    parser = argparse.ArgumentParser(
        prog="docker-inventory-agent",
        description="Collect OS packages and files from Docker containers",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Inspect all running containers
  docker-inventory-agent -c docker-inventory-agent.config

  # Pull, start and inspect a single image
  docker-inventory-agent -i alpine:3.19

  # Start the container with a specific command
  docker-inventory-agent -i ubuntu:22.04 -w "sleep;3600"
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "-c",
        "--config",
        dest="config_file",
        default=DEFAULT_CONFIG_FILE,
        help=f"Config file path (default: {DEFAULT_CONFIG_FILE})",
    )

    parser.add_argument(
        "-i",
        "--image",
        default="",
        help="Docker image to be scanned; a container is started from it and removed afterwards",
    )

    parser.add_argument(
        "-w",
        "--withCmd",
        dest="with_cmd",
        default="",
        help='Start the container with a specific command, ";" separated (only works with -i)',
    )

    parser.add_argument(
        "-I",
        "--interactive",
        action="store_true",
        help="Start the container in interactive mode (only works with -i)",
    )

    parser.add_argument(
        "--json-output",
        "-o",
        default=None,
        help="Also write the collected inventories to this JSON file",
    )

    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable verbose output"
    )
    return parser


def main(argv=None):
    """Main entry point for the CLI."""
    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(logging.DEBUG if args.verbose else logging.INFO)
    if args.verbose:
        logger.debug(f"docker-inventory-agent version {__version__}")

    if args.with_cmd and not args.image:
        parser.error("--withCmd requires --image")

    try:
        config = AgentConfig.load(args.config_file)
    except ConfigurationError as e:
        logger.error(str(e))
        return int(StatusCode.CLIENT_FAILURE)

    if not args.verbose:
        setup_logging(parse_level(config.get(keys.LOG_LEVEL)))

    options = RunOptions(
        target_image=args.image,
        startup_command=parse_startup_command(args.with_cmd),
        interactive=args.interactive,
    )

    try:
        return int(run_agent(config, options, json_output=args.json_output))
    except KeyboardInterrupt:
        print("\n\nInterrupted by user. Exiting...", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
