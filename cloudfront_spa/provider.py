"""
AWS provider for the CloudFront SPA host.

Wraps boto3 clients behind the ``request(service, method, params)`` call
shape the plugin uses, and owns the stack naming convention.
"""

from __future__ import annotations
import logging
from typing import Any, Dict, Optional

import boto3

from cloudfront_spa.configs.service_cfg import ServiceCfg

logger = logging.getLogger(__name__)


class Naming:
    """Stack naming for a service."""

    def __init__(self, service: ServiceCfg) -> None:
        self.service = service

    def get_stack_name(self) -> str:
        return self.service.stack_name


class AwsProvider:
    """
    boto3-backed provider.

    Calls run inline on the event loop's thread. Errors from botocore
    (``ClientError`` and friends) are not caught here.
    """

    name = "aws"

    def __init__(self, service: ServiceCfg, session: Optional[boto3.session.Session] = None) -> None:
        """
        Args:
            service: Service configuration (region, profile, stack name)
            session: Pre-built boto3 session; one is created from the
                provider settings when omitted
        """
        self.service = service
        self.naming = Naming(service)
        self.session = session or boto3.session.Session(
            region_name=service.provider.region,
            profile_name=service.provider.profile,
        )
        self._clients: Dict[str, Any] = {}

    def client(self, service_name: str) -> Any:
        """Return the cached boto3 client for a service, creating it on first use."""
        if service_name not in self._clients:
            self._clients[service_name] = self.session.client(service_name)
        return self._clients[service_name]

    async def request(
            self,
            service_name: str,
            method: str,
            params: Optional[Dict[str, Any]] = None
        ) -> Dict[str, Any]:
        """
        Call a boto3 client method.

        The call runs on the event loop thread, so concurrent requests (for
        example parallel output lookups) are serialized.

        Args:
            service_name: boto3 service name (e.g. "s3", "cloudformation")
            method: Client method name (e.g. "list_objects_v2")
            params: Keyword arguments for the call

        Returns:
            The raw response dictionary
        """
        logger.debug("AWS request %s.%s", service_name, method)
        return getattr(self.client(service_name), method)(**(params or {}))
