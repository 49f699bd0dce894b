"""
CLI entry point for the BoonIDE orchestrator.

Runs a single prompt through the service and prints the TaskResult as
JSON. It can be invoked as: python -m boonide
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .errors import BoonIDEError, InvalidTask
from .service import BoonIDEService
from .settings import OrchestratorSettings, load_settings
from .types import DevelopmentTask, Mode, TaskPriority


def setup_logging(settings: OrchestratorSettings) -> None:
    """Configure root logging from settings. Logs go to stderr."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper()),
        format=settings.log_format,
        handlers=[logging.StreamHandler(sys.stderr)],
    )


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="boonide",
        description="BoonIDE orchestrator - run a development prompt on the agent pool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run a prompt in the current default mode
  python -m boonide --prompt "add tests for the parser"

  # Run in spec-centric mode on specific agents
  python -m boonide --prompt "validate the API" --mode spec-centric --agents analysis,validation

Environment Variables:
  BOONIDE_MODE           Initial mode
  BOONIDE_TASK_TIMEOUT   Unit-of-work timeout in seconds
  BOONIDE_LOG_LEVEL      Logging level (DEBUG, INFO, WARNING, ERROR)
        """,
    )
    parser.add_argument("--prompt", required=True, help="Prompt to execute")
    parser.add_argument("--mode", choices=[m.value for m in Mode], help="Mode for the task")
    parser.add_argument(
        "--priority",
        choices=[p.value for p in TaskPriority],
        default=TaskPriority.MEDIUM.value,
        help="Task priority (default: medium)",
    )
    parser.add_argument("--agents", help="Comma-separated agent ids (default: context,analysis)")
    parser.add_argument("--config", type=Path, help="Path to settings file (YAML)")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: INFO)",
    )
    return parser.parse_args(argv)


async def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for a successful task, 1 otherwise)
    """
    args = parse_arguments(argv)

    try:
        settings = load_settings(config_file=args.config, use_env=True)
    except (OSError, ValueError) as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return 1

    if args.log_level:
        settings.log_level = args.log_level

    setup_logging(settings)
    logger = logging.getLogger(__name__)

    agents = args.agents.split(",") if args.agents else list(settings.default_agents)
    task = DevelopmentTask(
        prompt=args.prompt,
        mode=Mode(args.mode) if args.mode else None,
        priority=TaskPriority(args.priority),
        required_agents=[agent.strip() for agent in agents if agent.strip()],
        metadata={"action": "cli"},
    )

    try:
        async with BoonIDEService(settings) as service:
            result = await service.execute_task(task)
    except InvalidTask as e:
        logger.error(f"Invalid task: {e}")
        return 1
    except BoonIDEError as e:
        logger.error(f"Orchestrator error: {e}")
        return 1

    print(json.dumps(result.model_dump(mode="json", by_alias=True), indent=2))
    return 0 if result.success else 1


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
