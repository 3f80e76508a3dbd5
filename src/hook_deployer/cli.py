"""Command-line interface for hook-deployer."""

from __future__ import annotations

import argparse
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .config import AppConfig, load_config
from .deploy_helper import Producers, exec_deployment, load_pipeline
from .deployment import Deployment
from .errors import HookConstructionError
from .hook import Phase
from .utils.logging import get_logger, set_level

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_INVALID = 2


@dataclass
class CLIContext:
    """Context captured from CLI arguments."""

    config: AppConfig


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hook-deployer",
        description="Run a deployment pipeline of shell hooks locally or over SSH.",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to a JSON config file overriding defaults.",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Log level (DEBUG, INFO, WARNING, ERROR).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    run_parser = subparsers.add_parser("run", help="Execute a pipeline file")
    run_parser.add_argument("pipeline", help="Path to the pipeline JSON file")

    render_parser = subparsers.add_parser(
        "render", help="Print the commands of a pipeline file without running them"
    )
    render_parser.add_argument("pipeline", help="Path to the pipeline JSON file")

    return parser


def _build_context(args: argparse.Namespace) -> CLIContext:
    config = load_config(args.config)
    if args.log_level:
        config.logging.level = args.log_level
    set_level(config.logging.level)
    return CLIContext(config=config)


def _load_deployment(path: str, context: CLIContext) -> Deployment:
    with Path(path).open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    producers = Producers.from_names(context.config.producers)
    return load_pipeline(payload, producers)


def handle_run_command(args: argparse.Namespace, context: CLIContext) -> int:
    deployment = _load_deployment(args.pipeline, context)
    result = exec_deployment(deployment, config=context.config)

    print(f"\n{'='*60}")
    print(f"📦 {deployment.name} {deployment.vsn}")
    for hook_result in result.hook_results:
        status_emoji = {"success": "✅", "failed": "❌", "ignored": "⚠️"}[hook_result.status.value]
        print(f"  {status_emoji} {hook_result.name:<30} {hook_result.status.value}")
    if result.skipped_hooks:
        print(f"  ⏭️ {result.skipped_hooks} hook(s) not run")
    print(f"{'='*60}\n")

    if not result.success:
        failure = result.first_failure
        if failure is not None:
            print("❌ First failure:")
            print(failure.describe())
        return EXIT_FAILED
    return EXIT_OK


def handle_render_command(args: argparse.Namespace, context: CLIContext) -> int:
    deployment = _load_deployment(args.pipeline, context)

    for i, hook in enumerate(deployment.hooks, 1):
        flags = f"run_ensure={hook.run_ensure} ignore_failure={hook.ignore_failure}"
        print(f"[{i}] {hook.name or f'hook-{i}'} ({flags})")
        for phase in Phase:
            for operation in hook.operations(phase):
                print(f"    {phase.value:<8} @ {operation.destination}")
                for line in operation.environmentalize_cmd().split("\n"):
                    print(f"      $ {line}")
        print()
    return EXIT_OK


def dispatch_command(args: argparse.Namespace) -> int:
    context = _build_context(args)

    try:
        if args.command == "run":
            return handle_run_command(args, context)
        if args.command == "render":
            return handle_render_command(args, context)
    except (HookConstructionError, json.JSONDecodeError) as exc:
        logger.error("Invalid pipeline: %s", exc)
        return EXIT_INVALID

    raise ValueError(f"Unsupported command: {args.command}")


def run_cli(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    return dispatch_command(args)
