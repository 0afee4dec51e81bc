# src/shoes_ecs_task/cli.py
"""
Command-line adapter for the ECS task plugin.

Drives the same handler a shoes host would, for manual provisioning and
configuration checks:

    shoes-ecs-task check-config
    shoes-ecs-task add --setup-script setup.sh --runner-name myshoes-1
    shoes-ecs-task delete arn:aws:ecs:...:task/runners/0f1e2d...

Responses are printed to stdout as JSON; logs go to stderr.

Exit codes:
    0  success
    1  the operation failed (InstanceError) or the setup script is unreadable
    2  configuration is missing or invalid
"""

import argparse
import asyncio
import json
import logging
import sys
from .config import load_app_config
from .exceptions import InstanceError, MissingConfiguration, ShoesECSError
from .logging_config import configure_logging, log_display, logging_config_from_env
from .models import AddInstanceRequest, DeleteInstanceRequest
from .registry import PLUGIN_NAME, default_registry

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2


def _read_script(path: str | None) -> str:
    if not path:
        return ""
    if path == "-":
        return sys.stdin.read()
    with open(path, encoding="utf-8") as f:
        return f.read()


def _report_error(error: Exception, json_output: bool) -> None:
    if json_output:
        if isinstance(error, ShoesECSError):
            data = error.to_dict()
        else:
            data = {"error_type": error.__class__.__name__, "message": str(error)}
        print(json.dumps(data), file=sys.stderr)
    else:
        print(f"error: {error}", file=sys.stderr)


def cmd_check_config() -> int:
    config = load_app_config()
    print(json.dumps(config.to_dict(), indent=2))
    return EXIT_OK


def cmd_add(setup_script: str | None, runner_name: str) -> int:
    handler = default_registry().create(PLUGIN_NAME)
    request = AddInstanceRequest(runner_name=runner_name, setup_script=_read_script(setup_script))
    response = asyncio.run(handler.add_instance(request))
    log_display(logger, logging.INFO, f"Launched {response.cloud_id}")
    print(response.model_dump_json())
    return EXIT_OK


def cmd_delete(cloud_id: str) -> int:
    handler = default_registry().create(PLUGIN_NAME)
    response = asyncio.run(handler.delete_instance(DeleteInstanceRequest(cloud_id=cloud_id)))
    print(response.model_dump_json())
    return EXIT_OK


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="shoes-ecs-task",
        description="Launch myshoes runners as ECS Fargate tasks",
    )
    parser.add_argument(
        "--verbose", "-v",
        help="Log everything to stderr",
        action="store_true"
    )
    parser.add_argument(
        "--json",
        help="Report errors as JSON",
        action="store_true"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("check-config", help="Validate ECS_TASK_* configuration")

    add_parser = subparsers.add_parser("add", help="Launch one runner task")
    add_parser.add_argument(
        "--setup-script", "-s",
        help="Path to the runner setup script ('-' for stdin)",
        default=None
    )
    add_parser.add_argument(
        "--runner-name", "-n",
        help="Runner name (for logging)",
        default=""
    )

    delete_parser = subparsers.add_parser("delete", help="Delete a runner task (no-op)")
    delete_parser.add_argument("cloud_id", help="Task ARN returned by 'add'")

    return parser


def main(args: list[str] | None = None) -> int:
    """
    Main entry point.

    Args:
        args: Command line arguments (defaults to sys.argv)

    Returns:
        Exit code
    """
    parser = create_parser()
    parsed = parser.parse_args(args)

    log_config = logging_config_from_env()
    if parsed.verbose:
        log_config.update({"console_enabled": True, "console_level": "DEBUG"})
    configure_logging(config=log_config)

    try:
        if parsed.command == "check-config":
            return cmd_check_config()
        elif parsed.command == "add":
            return cmd_add(parsed.setup_script, parsed.runner_name)
        elif parsed.command == "delete":
            return cmd_delete(parsed.cloud_id)
        else:
            parser.print_help()
            return EXIT_OK
    except MissingConfiguration as e:
        _report_error(e, parsed.json)
        return EXIT_CONFIG_ERROR
    except InstanceError as e:
        _report_error(e, parsed.json)
        return EXIT_FAILURE
    except (OSError, UnicodeDecodeError) as e:
        # Unreadable --setup-script
        _report_error(e, parsed.json)
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
