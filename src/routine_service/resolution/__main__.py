"""
Exercise Resolution - CLI Entry Point

Checks exercise references against the catalog from a shell, using the same
retry and reconciliation path as the routine service's handlers.

Usage:
    python -m src.routine_service.resolution [options] verify|fetch|get|health ...

Examples:
    # Are these exercises all in the catalog?
    python -m src.routine_service.resolution verify 3 5 5 7

    # Fetch display data, ids may also be comma-separated
    python -m src.routine_service.resolution --url http://catalog:3002 fetch 3,5,7

    # Single exercise via the item endpoint
    python -m src.routine_service.resolution get 12
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any

from pydantic import ValidationError

from src.common.logging import configure_sanitized_logging, get_sanitized_logger
from src.common.telemetry import init_telemetry, shutdown_telemetry
from src.routine_service.config import ExerciseCatalogConfig
from src.routine_service.resolution.errors import ExerciseResolutionError
from src.routine_service.resolution.factory import create_exercise_service

logger = get_sanitized_logger(__name__)

SERVICE_NAME = "routine-service"

EXIT_OK = 0
EXIT_MISSING = 1
# argparse already exits with 2 on usage errors
EXIT_ERROR = 3


def parse_ids(values: list[str]) -> list[int]:
    """Flatten "3 5,7" style arguments into a list of positive ids."""
    ids = []
    for value in values:
        for part in value.split(","):
            part = part.strip()
            if not part:
                continue
            try:
                exercise_id = int(part)
            except ValueError:
                raise argparse.ArgumentTypeError(f"not an exercise id: {part!r}") from None
            if exercise_id <= 0:
                raise argparse.ArgumentTypeError(f"exercise ids must be positive: {part}")
            ids.append(exercise_id)
    return ids


def parse_single_id(value: str) -> int:
    """Parse exactly one positive exercise id."""
    ids = parse_ids([value])
    if len(ids) != 1:
        raise argparse.ArgumentTypeError(f"expected exactly one exercise id, got {value!r}")
    return ids[0]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m src.routine_service.resolution",
        description="Resolve exercise references against the exercise catalog",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument("--url", default=None, help="Catalog base URL (default: from config)")
    parser.add_argument(
        "--max-attempts",
        type=int,
        default=None,
        help="Retries while rate limited (default: from config or 3)",
    )
    parser.add_argument(
        "--transport-mode",
        choices=["batch", "fanout"],
        default=None,
        help="Lookup strategy (default: from config or batch)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Overall deadline in seconds, backoff included",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        default=None,
        help="Log level (default: from config or info)",
    )

    commands = parser.add_subparsers(dest="command", required=True)

    verify = commands.add_parser("verify", help="Check that exercises exist")
    verify.add_argument("ids", nargs="+", help="Exercise ids")

    fetch = commands.add_parser("fetch", help="Fetch exercise display data")
    fetch.add_argument("ids", nargs="+", help="Exercise ids")
    fetch.add_argument(
        "--keep-duplicates",
        action="store_true",
        help="Repeat exercises as often as they were listed",
    )

    get = commands.add_parser("get", help="Fetch one exercise")
    get.add_argument("id", type=parse_single_id, help="Exercise id")

    commands.add_parser("health", help="Check catalog health")

    return parser


def build_config(args: argparse.Namespace) -> ExerciseCatalogConfig:
    """Build configuration from args and environment."""
    overrides: dict[str, Any] = {}

    if args.url:
        overrides["url"] = args.url
    if args.max_attempts is not None:
        overrides["max_attempts"] = args.max_attempts
    if args.transport_mode:
        overrides["transport_mode"] = args.transport_mode
    if args.timeout is not None:
        overrides["deadline_seconds"] = args.timeout
    if args.log_level:
        overrides["log_level"] = args.log_level.upper()

    return ExerciseCatalogConfig(**overrides)


def _emit(payload: Any) -> None:
    print(json.dumps(payload, indent=2))


async def run(args: argparse.Namespace, config: ExerciseCatalogConfig) -> int:
    """Run one command and return the process exit code."""
    async with create_exercise_service(config) as service:
        if args.command == "health":
            healthy = await service.health_check()
            _emit({"healthy": healthy, "url": config.url})
            return EXIT_OK if healthy else EXIT_ERROR

        if args.command == "get":
            exercise_id = args.id
            exercise = await service.get_one(exercise_id)
            if exercise is None:
                _emit({"found": False, "id": exercise_id})
                return EXIT_MISSING
            _emit({"found": True, "exercise": exercise.model_dump(by_alias=True)})
            return EXIT_OK

        ids = parse_ids(args.ids)

        if args.command == "verify":
            check = await service.verify_all(ids)
            _emit({"allValid": check.all_valid, "invalid": check.invalid})
            return EXIT_OK if check.all_valid else EXIT_MISSING

        result = await service.fetch_all(ids, keep_duplicates=args.keep_duplicates)
        _emit(
            {
                "exercises": [e.model_dump(by_alias=True) for e in result.exercises],
                "missing": result.missing,
            }
        )
        return EXIT_OK if not result.missing else EXIT_MISSING


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = build_config(args)
    except ValidationError as e:
        parser.error(str(e))

    configure_sanitized_logging(config.log_level)
    init_telemetry(service_name=SERVICE_NAME)

    try:
        return asyncio.run(run(args, config))
    except argparse.ArgumentTypeError as e:
        parser.error(str(e))
    except ExerciseResolutionError as e:
        logger.error(str(e))
        print(f"error: {e}", file=sys.stderr)
        return EXIT_ERROR
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return EXIT_ERROR
    finally:
        shutdown_telemetry()
    return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
