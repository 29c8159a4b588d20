"""
Minimal deployment host for running the plugin outside a framework.

The host owns the service configuration, the compiled CloudFormation
template, a logging facade and the hook dispatch. Every lifecycle event
``e`` runs the hooks registered for ``before:e``, ``e`` and ``after:e`` in
that order, after ``initialize``.
"""

from __future__ import annotations
import copy
import inspect
import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional

from cloudfront_spa.configs.error_handler import ConfigurationError, ErrorHandler
from cloudfront_spa.configs.service_cfg import ServiceCfg

logger = logging.getLogger(__name__)

TEMPLATE_DIR = ".serverless"
TEMPLATE_FILE = "cloudformation-template-update-stack.json"

CORE_COMMANDS: Dict[str, List[str]] = {
    "package": ["package:finalize"],
    "remove": ["remove:remove"],
    "info": ["aws:info:displayStackOutputs"],
}


class Cli:
    """Logging facade handed to plugins."""

    def __init__(self, log: Optional[logging.Logger] = None) -> None:
        self.logger = log or logger

    def log(self, message: str, entity: str = "Serverless") -> None:
        self.logger.info("%s: %s", entity, message)

    def warn(self, message: str, entity: str = "Serverless") -> None:
        self.logger.warning("%s: %s", entity, message)

    def console_log(self, message: str) -> None:
        print(message)


class ConfigSchemaHandler:
    """Collects custom-properties schemas registered by plugins."""

    def __init__(self) -> None:
        self.schemas: List[Dict[str, Any]] = []

    def define_custom_properties(self, schema: Dict[str, Any]) -> None:
        self.schemas.append(schema)

    def validate(self, custom: Mapping[str, Any]) -> None:
        for schema in self.schemas:
            ErrorHandler.validate_schema(dict(custom or {}), schema, "custom")


def new_template(service: ServiceCfg) -> Dict[str, Any]:
    """
    Start a compiled template with the user's own resources and outputs.

    Args:
        service: Service configuration

    Returns:
        A fresh CloudFormation template dictionary
    """
    user = copy.deepcopy(service.resources)
    return {
        "AWSTemplateFormatVersion": "2010-09-09",
        "Description": f"The AWS CloudFormation template for {service.service} ({service.provider.stage})",
        "Resources": user.get("Resources") or {},
        "Outputs": user.get("Outputs") or {},
    }


class Serverless:
    """
    Deployment host.

    Attributes:
        service: Service configuration
        cli: Logging facade
        config_schema_handler: Custom-properties schema registry
        compiled_template: Template plugins mutate during ``package``
        plugins: Loaded plugin instances, in load order
    """

    def __init__(self, service: ServiceCfg, provider: Any, cli: Optional[Cli] = None) -> None:
        self.service = service
        self.cli = cli or Cli()
        self.config_schema_handler = ConfigSchemaHandler()
        self.compiled_template = new_template(service)
        self.plugins: List[Any] = []
        self._providers = {provider.name: provider}
        self._core_hooks: Dict[str, Callable] = {
            "package:finalize": self._write_template,
            "remove:remove": self._remove_stack,
            "aws:info:displayStackOutputs": self._display_stack_outputs,
        }
        self.template_dir = Path(TEMPLATE_DIR)

    def get_provider(self, name: str) -> Any:
        if name not in self._providers:
            raise ConfigurationError(f"Unknown provider: {name}")
        return self._providers[name]

    def add_plugin(self, plugin_class: type, options: Optional[Mapping[str, Any]] = None) -> Any:
        plugin = plugin_class(self, options or {})
        self.plugins.append(plugin)
        return plugin

    def commands(self) -> Dict[str, List[str]]:
        """
        Map every runnable command (space separated) to its lifecycle events.
        """
        commands = dict(CORE_COMMANDS)
        for plugin in self.plugins:
            for name, spec in getattr(plugin, "commands", {}).items():
                self._collect(commands, [name], spec)
        return commands

    def _collect(self, commands: Dict[str, List[str]], path: List[str], spec: Mapping[str, Any]) -> None:
        events = spec.get("lifecycle_events")
        if events:
            commands[" ".join(path)] = [":".join(path + [e]) for e in events]
        for name, child in (spec.get("commands") or {}).items():
            self._collect(commands, path + [name], child)

    def _hooks_for(self, event: str) -> List[Callable]:
        hooks = []
        for plugin in self.plugins:
            hook = getattr(plugin, "hooks", {}).get(event)
            if hook is not None:
                hooks.append(hook)
        return hooks

    async def _call(self, hook: Callable) -> None:
        result = hook()
        if inspect.isawaitable(result):
            await result

    async def initialize(self) -> None:
        """Validate custom properties, then run every ``initialize`` hook."""
        self.config_schema_handler.validate(self.service.custom)
        for hook in self._hooks_for("initialize"):
            await self._call(hook)

    async def run(self, command: str) -> None:
        """
        Run a command's lifecycle.

        Args:
            command: Command name, e.g. "package" or "deploy react"

        Raises:
            ConfigurationError: If the command is unknown
        """
        commands = self.commands()
        if command not in commands:
            raise ConfigurationError(f"Unknown command: {command}")

        await self.initialize()
        for event in commands[command]:
            logger.debug("Lifecycle event %s", event)
            for hook in self._hooks_for(f"before:{event}"):
                await self._call(hook)
            core = self._core_hooks.get(event)
            if core is not None:
                await self._call(core)
            for hook in self._hooks_for(event):
                await self._call(hook)
            for hook in self._hooks_for(f"after:{event}"):
                await self._call(hook)

    def _write_template(self) -> None:
        self.template_dir.mkdir(parents=True, exist_ok=True)
        path = self.template_dir / TEMPLATE_FILE
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.compiled_template, f, indent=2)
        self.cli.log(f"Template written to {path}")

    async def _remove_stack(self) -> None:
        provider = self.get_provider("aws")
        stack_name = provider.naming.get_stack_name()
        self.cli.log(f"Removing stack {stack_name}")
        await provider.request("cloudformation", "delete_stack", {"StackName": stack_name})
        provider.client("cloudformation").get_waiter("stack_delete_complete").wait(StackName=stack_name)
        self.cli.log(f"Stack {stack_name} removed")

    async def _display_stack_outputs(self) -> None:
        provider = self.get_provider("aws")
        stack_name = provider.naming.get_stack_name()
        result = await provider.request("cloudformation", "describe_stacks", {"StackName": stack_name})
        self.cli.console_log(f"Stack Outputs ({stack_name})")
        for stack in result.get("Stacks") or []:
            for output in stack.get("Outputs") or []:
                self.cli.console_log(f"  {output['OutputKey']}: {output['OutputValue']}")
