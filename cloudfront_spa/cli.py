#!/usr/bin/env python3
"""
Command line entry point for the CloudFront SPA deployment host.

    cloudfront-spa package
    cloudfront-spa deploy react [--skip-build] [--dry-run]
    cloudfront-spa info
    cloudfront-spa remove
    cloudfront-spa validate
"""

from __future__ import annotations
import argparse
import asyncio
import logging
import sys
from typing import Any, List, Mapping, Optional

from botocore.exceptions import BotoCoreError, ClientError

from cloudfront_spa.configs.config_manager import ConfigManager
from cloudfront_spa.configs.error_handler import SpaDeployError
from cloudfront_spa.host import Serverless
from cloudfront_spa.plugin import CloudfrontReactPlugin
from cloudfront_spa.provider import AwsProvider

logger = logging.getLogger(__name__)

PLUGINS = [CloudfrontReactPlugin]

CORE_USAGE = {
    "package": "Compile the CloudFormation template into .serverless/.",
    "remove": "Empty the web root and delete the stack.",
    "info": "Display stack outputs and the public URL.",
    "validate": "Validate the deployment file and exit.",
}


def _add_options(parser: argparse.ArgumentParser, options: Mapping[str, Any]) -> None:
    for name, spec in options.items():
        flags = [f"--{name}"]
        if spec.get("shortcut"):
            flags.append(f"-{spec['shortcut']}")
        if spec.get("type") == "boolean":
            parser.add_argument(*flags, dest=name, action="store_true", help=spec.get("usage"))
        else:
            parser.add_argument(*flags, dest=name, required=spec.get("required", False), help=spec.get("usage"))


def _add_command(subparsers: Any, path: List[str], spec: Mapping[str, Any]) -> None:
    parser = subparsers.add_parser(path[-1], help=spec.get("usage"))
    if spec.get("lifecycle_events"):
        parser.set_defaults(command_path=" ".join(path))
    _add_options(parser, spec.get("options") or {})
    children = spec.get("commands") or {}
    if children:
        nested = parser.add_subparsers(
            dest="_".join(path + ["command"]),
            required=not spec.get("lifecycle_events"),
        )
        for name, child in children.items():
            _add_command(nested, path + [name], child)


def build_parser(plugins: List[type] = PLUGINS) -> argparse.ArgumentParser:
    """
    Build the argument parser from the core commands and plugin commands.

    Args:
        plugins: Plugin classes whose ``commands`` are exposed

    Returns:
        Configured parser; parsed args carry ``command_path``
    """
    ap = argparse.ArgumentParser(prog="cloudfront-spa", description="Deploy a single-page app behind CloudFront.")
    ap.add_argument("-c", "--config", default=ConfigManager.DEFAULT_FILE, help="deployment file (JSON)")
    ap.add_argument("-s", "--stage", help="override provider.stage")
    ap.add_argument("-r", "--region", help="override provider.region")
    ap.add_argument("-v", "--verbose", action="store_true", help="debug logging")

    sub = ap.add_subparsers(dest="command", required=True)
    for name, usage in CORE_USAGE.items():
        sub.add_parser(name, help=usage).set_defaults(command_path=name)
    for plugin in plugins:
        for name, spec in plugin.commands.items():
            _add_command(sub, [name], spec)
    return ap


async def _execute(serverless: Serverless, command: str) -> None:
    if command == "validate":
        await serverless.initialize()
        serverless.cli.console_log("Configuration is valid [OK]")
        return
    await serverless.run(command)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    try:
        service = ConfigManager(args.config).load_service(stage=args.stage, region=args.region)
        serverless = Serverless(service, AwsProvider(service))
        options = vars(args)
        for plugin_class in PLUGINS:
            serverless.add_plugin(plugin_class, options)
        asyncio.run(_execute(serverless, args.command_path))
    except (SpaDeployError, ClientError, BotoCoreError) as e:
        logger.error("%s", e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
