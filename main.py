"""Main entry point for the end-to-end scenarios - CLI."""

import argparse
import json
import sys
from pathlib import Path

from riot_tests.config import get_settings, load_settings_from_json
from riot_tests import console


def load_config(args) -> bool:
    """Load config from specified path or default config.json."""
    config_path = Path(args.config) if args.config else Path("config.json")

    if not config_path.exists():
        if args.config:
            console.log(f"{console.error('Error:')} Config file not found: {config_path}")
            return False
        return True

    try:
        load_settings_from_json(config_path)
        console.log(f"Loaded config from: {config_path}")
        return True
    except (json.JSONDecodeError, ValueError) as e:
        console.log(f"{console.error('Error:')} Invalid config file: {e}")
        return False


def apply_overrides(settings, args):
    """Command line flags win over config file and environment."""
    updates = {}
    if args.headed:
        updates["headless"] = False
    if args.riot_url:
        updates["riot_url"] = args.riot_url
    if args.homeserver_url:
        updates["homeserver_url"] = args.homeserver_url
    if args.browser:
        updates["browser"] = args.browser
    return settings.model_copy(update=updates) if updates else settings


def _print_run_header(settings, markers, output_path):
    console.log("Running end-to-end scenarios...")
    console.log(f"  Browser: {settings.browser} (headless: {settings.headless})")
    console.log(f"  Web client: {settings.riot_url}")
    console.log(f"  Homeserver: {settings.homeserver_url}")
    console.log(f"  Markers: {markers or 'all'}")
    console.log(f"  Output: {output_path}")
    console.log("")


def _print_run_summary(result):
    line = console.dim("=" * 50)
    console.log(f"\n{line}")
    console.log(f"Scenario Run Complete: {console.info(result.run_id[:8])}")

    status = console.success("COMPLETED") if result.status.value == "completed" else console.error("FAILED")
    console.log(f"Status: {status}")
    console.log(f"Duration: {console.dim(f'{result.duration_seconds:.2f}s')}")

    failed = console.error(str(result.failed)) if result.failed else "0"
    console.log(
        f"Passed: {console.success(str(result.passed))}, Failed: {failed}, "
        f"Skipped: {result.skipped}, Total: {result.total}"
    )
    if result.artifacts:
        console.log(f"Session logs: {len(result.artifacts)} file(s) in {console.dim(str(Path(result.artifacts[0]).parent))}")
    console.log(f"Output: {console.dim(result.output_file)}")
    console.log(line)


def cli_run(args):
    """Run scenarios via CLI."""
    from riot_tests.runner import run_scenarios_sync
    from riot_tests.output import generate_output_filename

    if not load_config(args):
        return 1

    if args.color:
        console.force_color(True)

    settings = apply_overrides(get_settings(), args)

    markers = args.marker.split(",") if args.marker else None

    if args.output:
        output_path = Path(args.output)
        if output_path.is_dir():
            output_path = output_path / generate_output_filename()
    else:
        output_path = settings.reports_path / generate_output_filename()

    _print_run_header(settings, markers, output_path)

    result = run_scenarios_sync(
        markers=markers,
        settings=settings,
        output_path=output_path,
    )

    _print_run_summary(result)
    return 0 if result.status.value == "completed" else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Web client end-to-end scenarios",
        prog="riot-tests",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    run_parser = subparsers.add_parser("run", help="Run scenarios")
    run_parser.add_argument("-c", "--config", help="Path to JSON config file")
    run_parser.add_argument("-m", "--marker", help="Comma-separated scenario markers")
    run_parser.add_argument("--headed", action="store_true", help="Show browser (overrides config)")
    run_parser.add_argument("--browser", choices=["chromium", "firefox", "webkit"], help="Browser to launch")
    run_parser.add_argument("--riot-url", help="Base URL of the web client")
    run_parser.add_argument("--homeserver-url", help="Homeserver URL")
    run_parser.add_argument("-o", "--output", help="Output file/directory")
    run_parser.add_argument("--color", action="store_true", help="Force colors")
    run_parser.set_defaults(func=cli_run)
    return parser


def main():
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        sys.exit(1)

    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
