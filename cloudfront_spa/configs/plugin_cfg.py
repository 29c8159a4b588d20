"""
Plugin configuration for the CloudFront SPA deployment plugin.

This module turns the plugin's section of the service ``custom`` properties
into frozen, validated dataclasses. The raw section is checked against the
packaged JSON schema before anything is built, so a partially valid
configuration never reaches a stage hook.
"""

from __future__ import annotations
import json
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from cloudfront_spa.configs.error_handler import ConfigurationError, ErrorHandler

PLUGIN_NAME = "CloudfrontReactPlugin"

SCHEMA_PATH = Path(__file__).resolve().parent / "schema" / "plugin.schema.json"

# Prefix applied to every REACT_APP binding before it reaches the build tool.
ENV_PREFIX = "REACT_APP_"


@dataclass(frozen=True)
class OutputRef:
    """
    Reference to a CloudFormation stack output.

    Attributes:
        output: Output key to look up
        stack_name: Stack to read from; None means the current deployment's stack
    """
    output: str
    stack_name: Optional[str] = None


Binding = Union[str, OutputRef]


@dataclass(frozen=True)
class SpaCfg:
    """
    Validated plugin configuration.

    Exactly one of ``cra_directory`` (build from source) or
    ``cra_build_directory`` (pre-built output) is set.

    Attributes:
        domain_name: Public domain served by the distribution
        hosted_zone_id: Route 53 zone receiving the alias records
        certificate_arn: ACM certificate (us-east-1) for the distribution
        cra_directory: Application source directory
        cra_build_directory: Pre-built application directory
        react_app: Build-time environment bindings, keyed by unprefixed name
    """
    domain_name: str
    hosted_zone_id: str
    certificate_arn: str
    cra_directory: Optional[str] = None
    cra_build_directory: Optional[str] = None
    react_app: Mapping[str, Binding] = field(default_factory=dict)

    @property
    def prebuilt(self) -> bool:
        return self.cra_build_directory is not None

    @property
    def build_directory(self) -> str:
        """Directory uploaded by the sync stage."""
        if self.cra_build_directory is not None:
            return self.cra_build_directory
        return os.path.join(self.cra_directory, "build")

    @property
    def public_url(self) -> str:
        return f"https://{self.domain_name}/"


@lru_cache(maxsize=1)
def custom_properties_schema() -> Dict[str, Any]:
    """
    Load the packaged custom-properties schema.

    Returns:
        Parsed JSON schema
    """
    ErrorHandler.validate_file_exists(SCHEMA_PATH, "Plugin schema")
    with open(SCHEMA_PATH, "r", encoding="utf-8") as f:
        return json.load(f)


def _to_binding(value: Any) -> Binding:
    if isinstance(value, str):
        return value
    return OutputRef(output=value["output"], stack_name=value.get("stackName"))


def load_spa_cfg(custom: Optional[Mapping[str, Any]]) -> SpaCfg:
    """
    Build the plugin configuration from the service ``custom`` properties.

    Args:
        custom: The service's custom properties (may hold other plugins' sections)

    Returns:
        Validated plugin configuration

    Raises:
        ConfigurationError: If the section is absent or does not validate
    """
    if not custom:
        raise ConfigurationError(f"Missing {PLUGIN_NAME} configuration from custom.")

    section = custom.get(PLUGIN_NAME)
    if isinstance(section, dict):
        ErrorHandler.validate_exactly_one(
            section,
            ["craDirectory", "craBuildDirectory"],
            PLUGIN_NAME,
        )
    ErrorHandler.validate_schema(dict(custom), custom_properties_schema(), f"custom.{PLUGIN_NAME}")

    return SpaCfg(
        domain_name=section["domainName"],
        hosted_zone_id=section["hostedZoneId"],
        certificate_arn=section["certificateArn"],
        cra_directory=section.get("craDirectory"),
        cra_build_directory=section.get("craBuildDirectory"),
        react_app={k: _to_binding(v) for k, v in (section.get("REACT_APP") or {}).items()},
    )
