"""
Service-level configuration for the deployment host.

These dataclasses describe the deployment file as a whole (service name,
provider settings, custom properties and user resources) rather than the
plugin's own section.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from cloudfront_spa.configs.error_handler import ErrorHandler

DEFAULT_STAGE = "dev"
DEFAULT_REGION = "us-east-1"


@dataclass(frozen=True)
class ProviderCfg:
    """
    Cloud provider settings.

    Attributes:
        name: Provider name (only "aws" is supported)
        stage: Deployment stage
        region: AWS region for the stack
        profile: Optional named AWS credentials profile
    """
    name: str = "aws"
    stage: str = DEFAULT_STAGE
    region: str = DEFAULT_REGION
    profile: Optional[str] = None


@dataclass(frozen=True)
class ServiceCfg:
    """
    Parsed deployment file.

    Attributes:
        service: Service name, first half of the stack name
        provider: Provider settings
        custom: Custom properties, including plugin sections
        resources: User CloudFormation ``Resources``/``Outputs`` to merge
    """
    service: str
    provider: ProviderCfg = field(default_factory=ProviderCfg)
    custom: Dict[str, Any] = field(default_factory=dict)
    resources: Dict[str, Any] = field(default_factory=dict)

    @property
    def stack_name(self) -> str:
        return f"{self.service}-{self.provider.stage}"


def service_cfg_from_dict(
        data: Dict[str, Any],
        *,
        stage: Optional[str] = None,
        region: Optional[str] = None
    ) -> ServiceCfg:
    """
    Validate a raw deployment document and build a ServiceCfg.

    Args:
        data: Parsed deployment file
        stage: Stage override (e.g. from the command line)
        region: Region override

    Returns:
        Validated service configuration

    Raises:
        ConfigurationError: If required fields are missing or malformed
    """
    ErrorHandler.validate_type(data, dict, "(root)", "Deployment file")
    ErrorHandler.validate_required_fields(data, ["service"], "Deployment file")
    ErrorHandler.validate_string_not_empty(data["service"], "service", "Deployment file")

    provider = data.get("provider") or {}
    ErrorHandler.validate_type(provider, dict, "provider", "Deployment file")
    name = provider.get("name", "aws")
    ErrorHandler.validate_enum_value(name, ["aws"], "provider.name", "Deployment file")

    custom = data.get("custom") or {}
    ErrorHandler.validate_type(custom, dict, "custom", "Deployment file")
    resources = data.get("resources") or {}
    ErrorHandler.validate_type(resources, dict, "resources", "Deployment file")

    return ServiceCfg(
        service=data["service"],
        provider=ProviderCfg(
            name=name,
            stage=stage or provider.get("stage", DEFAULT_STAGE),
            region=region or provider.get("region", DEFAULT_REGION),
            profile=provider.get("profile"),
        ),
        custom=custom,
        resources=resources,
    )
