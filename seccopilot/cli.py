"""
Command line interface.

    seccopilot scan -r ./repo -c aws -o markdown
    seccopilot ci --fail-on high
    seccopilot config --set ai.apiKey=sk-...

Reports go to stdout; progress, logs and errors go to stderr.
"""

import argparse
import json
import sys
from collections.abc import Sequence

from .config import ConfigManager, ScanOptions, SecCopilotConfig, apply_environment
from .constants import VERSION
from .core.exceptions import SecCopilotError
from .logging_config import configure_logging
from .models import ScanResult, Severity
from .reports import ReportGenerator
from .scanner import run_scan

SEVERITY_CHOICES = [s.value for s in Severity]


def _print_progress(stage: str, message: str) -> None:
    print(f"  [{stage}] {message}", file=sys.stderr)


def _add_scan_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-r", "--repo", default=".", help="Repository path to scan (default: .)")
    parser.add_argument(
        "-c", "--cloud", default="aws", help="Cloud provider: aws, azure or gcp (default: aws)"
    )
    parser.add_argument(
        "-m", "--mode", default="technical", help="Report mode: technical, executive or compliance"
    )
    parser.add_argument("-o", "--output", help="Output format: table, json or markdown")
    parser.add_argument("-s", "--severity", help="Minimum severity to report: low, medium, high, critical")
    parser.add_argument("--demo", action="store_true", help="Run in demo mode (no file or network access)")
    parser.add_argument("--save", action="store_true", help="Also save the report to the report directory")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="seccopilot",
        description="Multi-domain security analysis with cross-domain attack-chain correlation",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument("--config-dir", help="Configuration directory (default: ~/.sec-copilot)")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level for stderr output (default: WARNING)",
    )
    parser.add_argument("--log-file", help="Also write JSON logs to this file, rotated hourly")

    subparsers = parser.add_subparsers(dest="command", required=True)

    scan = subparsers.add_parser("scan", help="Perform a security scan across all domains")
    _add_scan_arguments(scan)

    ci = subparsers.add_parser("ci", help="Scan and exit non-zero when findings reach a threshold")
    _add_scan_arguments(ci)
    ci.add_argument(
        "--fail-on",
        default="high",
        choices=SEVERITY_CHOICES,
        help="Fail when any finding has this severity or higher (default: high)",
    )

    config = subparsers.add_parser("config", help="Show or change persistent configuration")
    group = config.add_mutually_exclusive_group()
    group.add_argument("--set", metavar="KEY=VALUE", help="Set a configuration value")
    group.add_argument("--get", metavar="KEY", help="Print a configuration value")
    group.add_argument("--list", action="store_true", help="Print the whole configuration")

    return parser


def _scan_options(args: argparse.Namespace, config: SecCopilotConfig) -> ScanOptions:
    return ScanOptions.parse(
        repo=args.repo,
        cloud=args.cloud,
        mode=args.mode,
        output=args.output or config.reporting.default_format,
        severity=args.severity or config.scanning.default_severity,
        demo=args.demo,
    )


def _scan(args: argparse.Namespace, manager: ConfigManager) -> tuple[ScanOptions, SecCopilotConfig, ScanResult]:
    config = apply_environment(manager.load())
    options = _scan_options(args, config)
    result = run_scan(options, config, progress=_print_progress)

    reporter = ReportGenerator(options, config.reporting)
    print(reporter.render(result))
    if args.save or config.reporting.save_reports:
        path = reporter.save(result)
        print(f"Report saved to {path}", file=sys.stderr)
    return options, config, result


def cmd_scan(args: argparse.Namespace, manager: ConfigManager) -> int:
    _scan(args, manager)
    return 0


def cmd_ci(args: argparse.Namespace, manager: ConfigManager) -> int:
    _, _, result = _scan(args, manager)
    threshold = Severity(args.fail_on)
    failing = [f for f in result.findings if f.severity.at_least(threshold)]
    if failing:
        print(
            f"CI check failed: {len(failing)} finding(s) at or above {threshold.value}",
            file=sys.stderr,
        )
        return 1
    print(f"CI check passed: no findings at or above {threshold.value}", file=sys.stderr)
    return 0


def cmd_config(args: argparse.Namespace, manager: ConfigManager) -> int:
    if args.set:
        key, sep, value = args.set.partition("=")
        if not key or not sep:
            print("Error: invalid format, use --set key=value", file=sys.stderr)
            return 1
        manager.set_value(key, value)
        print(f"Set {key} = {value}")
    elif args.get:
        print(f"{args.get} = {json.dumps(manager.get_value(args.get))}")
    else:
        print(json.dumps(manager.list_config(), indent=2))
    return 0


COMMANDS = {"scan": cmd_scan, "ci": cmd_ci, "config": cmd_config}


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(log_file=args.log_file, log_level=args.log_level)
    manager = ConfigManager(args.config_dir)

    try:
        return COMMANDS[args.command](args, manager)
    except SecCopilotError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
