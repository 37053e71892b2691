"""
Intune Group Assignment Checker — Main Orchestrator

Usage:
    python -m intune_assignment_checker "IT-Admins"
    python -m intune_assignment_checker 3f1c2a9e-0b7d-4d8e-9c41-5a6b7c8d9e0f --export-path out.csv
    python -m intune_assignment_checker "IT-Admins" --config config.json --formats csv json
    python -m intune_assignment_checker "IT-Admins" --tenant-id ... --client-id ... --delegated
    python -m intune_assignment_checker --list-permissions

Exit codes: 0 when the run completes (also with zero assignments), 1 when
sign-in, group resolution or the export fails.

This tool is STRICTLY READ-ONLY. It will NEVER modify the tenant.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

from . import __version__
from .assignments.context import RunContext
from .assignments.groups import AmbiguousGroupError, GroupResolutionError, GroupResolver
from .auth.authenticator import AuthenticationError, Authenticator
from .collectors import ALL_COLLECTORS, CollectorResult
from .config import AppConfig, EXPORT_FORMATS
from .graph.client import GraphAPIError, GraphClient
from .reporting import ExportError, export_csv, export_json, print_summary
from .safety.guardian import ReadOnlyGuardian

logger = logging.getLogger("intune_assignment_checker")


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="intune-assignment-checker",
        description="List every Intune assignment targeting one group (READ-ONLY)",
    )
    parser.add_argument(
        "group",
        nargs="?",
        help="Group object ID or exact display name",
    )
    parser.add_argument(
        "--export-path", "-o",
        type=Path,
        default=None,
        help="CSV destination (default: IntuneAssignments_<group>_<timestamp>.csv)",
    )
    parser.add_argument(
        "--formats",
        nargs="+",
        choices=list(EXPORT_FORMATS),
        default=None,
        help="Output formats to generate (default: csv)",
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        help="Path to JSON configuration file",
    )
    parser.add_argument("--tenant-id", default=None, help="Tenant ID (overrides config)")
    parser.add_argument("--client-id", default=None, help="App registration client ID")
    auth_group = parser.add_mutually_exclusive_group()
    auth_group.add_argument(
        "--cert-path",
        type=Path,
        help="Path to base64-encoded PFX for certificate auth",
    )
    auth_group.add_argument(
        "--client-secret",
        default=None,
        help="Client secret for app-only auth",
    )
    auth_group.add_argument(
        "--delegated",
        action="store_true",
        help="Use delegated (device-code) authentication",
    )
    parser.add_argument(
        "--sequential",
        action="store_true",
        help="Fetch resource assignments one at a time",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    parser.add_argument(
        "--list-permissions",
        action="store_true",
        help="Print the Graph permissions the app registration needs and exit",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    args = parser.parse_args(argv)
    if not args.group and not args.list_permissions:
        parser.error("the group argument is required")
    return args


def build_config(args: argparse.Namespace) -> AppConfig:
    """Build configuration from config file, environment and CLI flags."""
    if args.config and args.config.exists():
        config = AppConfig.from_file(args.config)
    else:
        config = AppConfig()

    if args.delegated:
        config.auth.mode = "delegated"
    elif args.client_secret:
        config.auth.mode = "secret"
    elif args.cert_path:
        config.auth.mode = "certificate"

    if args.tenant_id and args.client_id:
        # CLI credentials replace any from the config file
        config.auth.certificate = None
        config.auth.secret = None
        config.auth.delegated = None

    overrides = {
        "INTUNE_TENANT_ID": args.tenant_id,
        "INTUNE_CLIENT_ID": args.client_id,
        "INTUNE_CERT_PATH": str(args.cert_path) if args.cert_path else None,
        "INTUNE_CLIENT_SECRET": args.client_secret,
    }
    env = dict(os.environ)
    env.update({k: v for k, v in overrides.items() if v})
    config.apply_environment(env)

    if args.cert_path and config.auth.certificate:
        config.auth.certificate.certificate_path = str(args.cert_path)
    if args.client_secret and config.auth.secret:
        config.auth.secret.client_secret = args.client_secret

    if args.export_path:
        config.output.export_path = str(args.export_path)
    if args.formats:
        config.output.formats = list(args.formats)
    if args.sequential:
        config.checker.parallel_resources = False
    config.verbose = config.verbose or args.verbose
    return config


def has_credentials(config: AppConfig) -> bool:
    return {
        "certificate": config.auth.certificate,
        "secret": config.auth.secret,
        "delegated": config.auth.delegated,
    }.get(config.auth.mode) is not None


def configure_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


async def run_collection(context: RunContext) -> dict[str, CollectorResult]:
    """
    Run every category collector in traversal order.

    Returns:
        Dict mapping collector name to CollectorResult.
    """
    results = {}
    for cls in ALL_COLLECTORS:
        collector = cls(context)
        result = await collector.execute()
        results[collector.name] = result

        marker = "⚠ " if result.failed else "✅"
        print(f"  {marker} {collector.category.label:<20s} "
              f"{len(result.records)} assignments "
              f"({result.metadata['resources_listed']} resources, "
              f"{result.metadata['duration_seconds']}s)")
        if result.failed:
            print(f"      {result.metadata['failed_requests']} request(s) failed; "
                  f"results for this category may be incomplete")
    return results


def generate_reports(
    context: RunContext,
    export_path: Path,
    formats: list[str],
    diagnostics: Optional[dict[str, Any]] = None,
) -> list[Path]:
    """Write every requested format. Raises ExportError on the first failure."""
    created = []
    json_path = export_path.with_suffix(".json")
    # The JSON report never takes the CSV's file name
    csv_path = export_path.with_suffix(".csv") if export_path == json_path else export_path
    if "csv" in formats:
        path = export_csv(context.aggregator, csv_path)
        created.append(path)
        print(f"  📊 CSV:   {path}")
    if "json" in formats:
        path = export_json(
            context.aggregator,
            context.group,
            json_path,
            diagnostics=diagnostics,
        )
        created.append(path)
        print(f"  📄 JSON:  {path}")
    return created


def _print_ambiguous(error: AmbiguousGroupError):
    print(f"\n❌ {error}")
    print(f"\n  {'Display Name':<40s} Object ID")
    print(f"  {'─'*40} {'─'*36}")
    for g in error.matches:
        print(f"  {g.display_name:<40s} {g.id}")


async def run_checker(identifier: str, config: AppConfig, access_token: str) -> int:
    """Resolve the group, traverse all categories and export. Returns the exit code."""
    guardian = ReadOnlyGuardian()

    async with GraphClient(access_token, guardian, config.checker) as client:
        print(f"\n🔎 Resolving group '{identifier}'...")
        try:
            group = await GroupResolver(client).resolve(identifier)
        except AmbiguousGroupError as e:
            _print_ambiguous(e)
            return 1
        except GroupResolutionError as e:
            print(f"\n❌ {e}")
            return 1
        except GraphAPIError as e:
            print(f"\n❌ Could not query Microsoft Graph: {e}")
            return 1
        print(f"✅ Group: {group.display_name} ({group.id})")

        context = RunContext(graph=client, group=group, config=config.checker)

        print("\n" + "=" * 70)
        print(" COLLECTING ASSIGNMENTS")
        print("=" * 70)
        results = await run_collection(context)

    if not context.aggregator:
        logger.warning(f"No assignments found for group '{group.display_name}'; nothing exported.")
        print(f"\n⚠  No assignments found for group '{group.display_name}'. No file written.")
        return 0

    print("\n" + "=" * 70)
    print(" SUMMARY")
    print("=" * 70)
    print_summary(context.aggregator, group)

    diagnostics = {
        "collectors": {name: r.metadata for name, r in results.items()},
        "graph": client.get_stats(),
        "safety": guardian.get_audit_record(),
    }
    export_path = config.output.resolve_export_path(group.display_name)
    print()
    try:
        generate_reports(context, export_path, config.output.formats, diagnostics)
    except ExportError as e:
        logger.error(str(e))
        print(f"\n❌ Export failed: {e}")
        return 1
    return 0


async def main_async(argv: Optional[Sequence[str]] = None) -> int:
    """Async entry point. Returns the process exit code."""
    args = parse_args(argv)

    if args.list_permissions:
        print("\n  Required Microsoft Graph application permissions (read-only):\n")
        for perm, purpose in Authenticator.list_required_permissions().items():
            print(f"  {perm:<42s} {purpose}")
        print()
        return 0

    config = build_config(args)
    configure_logging(config.verbose)

    print("=" * 70)
    print(f" Intune Group Assignment Checker v{__version__}")
    print(" Mode: READ-ONLY — No tenant modifications will be made")
    print("=" * 70)

    if not has_credentials(config):
        print("\n❌ No tenant credentials found. Use one of:")
        print("   • --tenant-id X --client-id Y [--cert-path P | --client-secret S | --delegated]")
        print("   • --config config.json")
        print("   • INTUNE_TENANT_ID / INTUNE_CLIENT_ID environment variables")
        return 1

    print("\n🔐 Authenticating...")
    try:
        token = Authenticator(config.auth).acquire_token()
    except AuthenticationError as e:
        print(f"❌ Authentication failed: {e}")
        return 1
    print("✅ Authentication successful.")

    return await run_checker(args.group, config, token)


def main():
    """Synchronous entry point for `python -m intune_assignment_checker`."""
    try:
        exit_code = asyncio.run(main_async())
    except KeyboardInterrupt:
        print("\n❌ Interrupted.")
        exit_code = 1
    except Exception:
        logger.exception("Unhandled error")
        exit_code = 1
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
