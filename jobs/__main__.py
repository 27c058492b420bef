"""Command-line entrypoint for dashboard jobs."""

from __future__ import annotations

import argparse
import os

import uvicorn

from jobs.config import SERVICE_CONFIGS, ServiceConfig, get_service_by_key, iter_services
from jobs.load_all import main as run_dashboard


def _format_service(config: ServiceConfig) -> str:
    return (
        f"{config.key}: name='{config.name}' endpoint={config.endpoint} "
        f"url_env={config.base_url_env} margin={config.margin_rate:.2f}"
    )


def _resolve_service_from_cli(key: str | None) -> ServiceConfig | None:
    if not key:
        return None
    config = get_service_by_key(key.strip())
    if config is None:
        known = ", ".join(config.key for config in SERVICE_CONFIGS)
        raise SystemExit(f"Unknown service key: {key} (expected one of {known})")
    return config


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Service order analytics job runner")
    subparsers = parser.add_subparsers(dest="command", required=True)

    dashboard_parser = subparsers.add_parser(
        "dashboard", help="Fetch all service orders and print dashboard JSON"
    )
    dashboard_parser.add_argument(
        "--service",
        help="Service key for a single-service dashboard (defaults to the overview)",
    )
    dashboard_parser.add_argument(
        "--log-level",
        help="Override LOG_LEVEL for this invocation (e.g. DEBUG, INFO)",
    )

    subparsers.add_parser("list-services", help="Show configured service lines")

    serve_parser = subparsers.add_parser("serve", help="Run the dashboard API with uvicorn")
    serve_parser.add_argument("--host", default=os.getenv("API_HOST", "127.0.0.1"))
    serve_parser.add_argument("--port", type=int, default=int(os.getenv("API_PORT", "8000")))

    args = parser.parse_args(argv)

    if args.command == "list-services":
        for config in iter_services():
            print(_format_service(config))
        return 0

    if args.command == "dashboard":
        config = _resolve_service_from_cli(args.service)
        if args.log_level:
            os.environ["LOG_LEVEL"] = args.log_level
        return run_dashboard(config.key if config else None)

    if args.command == "serve":
        log_level = os.getenv("LOG_LEVEL", "info").lower()
        uvicorn.run("api.main:app", host=args.host, port=args.port, log_level=log_level)
        return 0

    parser.error("Unknown command")
    return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
