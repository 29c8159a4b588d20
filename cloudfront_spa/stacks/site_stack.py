"""
Static site stack for the CloudFront SPA plugin.

This stack hosts the SpaWebsite construct. Its construct id doubles as the
stack name, so it must match ``<service>-<stage>`` for the plugin stages to
find the outputs.
"""

from __future__ import annotations

from aws_cdk import Stack
from constructs import Construct

from cloudfront_spa.builders.static_site_builder import SpaWebsite
from cloudfront_spa.configs.plugin_cfg import SpaCfg


class SpaSiteStack(Stack):
    """
    Stack for deploying the single-page application hosting.
    """

    def __init__(
            self,
            scope: Construct,
            construct_id: str,
            *,
            cfg: SpaCfg,
            service_name: str,
            stage: str,
            **kwargs
        ) -> None:
        """
        Initialize the static site stack.

        Args:
            scope: CDK construct scope
            construct_id: Construct ID (the stack name)
            cfg: Plugin configuration
            service_name: Service name
            stage: Deployment stage
            **kwargs: Additional stack properties
        """
        super().__init__(scope, construct_id, **kwargs)
        self.site = SpaWebsite(self, "Site", cfg=cfg, service_name=service_name, stage=stage)
