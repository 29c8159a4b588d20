"""
Static website builder for the CloudFront SPA plugin.

This module renders the same hosting fragment that the plugin injects into a
compiled template as a CDK construct, so the stack can also be deployed with
``cdk deploy``. Each resource keeps its fixed logical name, which lets the
plugin's sync, invalidate and remove stages resolve the stack outputs.
"""

from __future__ import annotations
from typing import Dict

from aws_cdk import CfnOutput, CfnResource, Fn
from constructs import Construct

from cloudfront_spa.builders.template_builder import build_outputs, build_resources
from cloudfront_spa.configs.plugin_cfg import SpaCfg


class SpaWebsite(Construct):
    """
    Private S3 origin behind CloudFront with Route 53 alias records.

    Resources are emitted as raw ``CfnResource`` nodes with their logical ids
    overridden to the fixed names used by the plugin.
    """
    def __init__(
            self,
            scope: Construct,
            construct_id: str,
            *,
            cfg: SpaCfg,
            service_name: str,
            stage: str
        ) -> None:
        """
        Initialize the static website builder.

        Args:
            scope: CDK construct scope
            construct_id: Construct ID
            cfg: Plugin configuration
            service_name: Service name, used in the OAI comment
            stage: Deployment stage
        """
        super().__init__(scope, construct_id)

        self.resources: Dict[str, CfnResource] = {}
        for logical_id, resource in build_resources(cfg, service_name=service_name, stage=stage).items():
            node = CfnResource(
                self,
                logical_id,
                type=resource["Type"],
                properties=resource["Properties"],
            )
            node.override_logical_id(logical_id)
            self.resources[logical_id] = node

        self.outputs: Dict[str, CfnOutput] = {}
        for name, output in build_outputs().items():
            node = CfnOutput(self, name, value=Fn.ref(output["Value"]["Ref"]))
            node.override_logical_id(name)
            self.outputs[name] = node
