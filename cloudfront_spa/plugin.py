"""
CloudFront SPA deployment plugin.

Provisions a private S3 web root behind a CloudFront distribution with
Route 53 alias records, and drives the build, upload and cache-invalidation
workflow of a create-react-app style single-page application against it.

Hook surface:
  - ``deploy react`` command: build -> sync -> invalidate -> info
  - ``before:package:finalize``: inject the hosting resources into the template
  - ``before:remove:remove``: empty the web root bucket so the stack can go
  - ``after:aws:info:displayStackOutputs``: print the public URL
"""

from __future__ import annotations
import os
import time
from typing import Any, Dict, Mapping, Optional

from cloudfront_spa.builders.template_builder import (
    BUCKET_NAME_OUTPUT,
    DISTRIBUTION_ID_OUTPUT,
    augment_template,
)
from cloudfront_spa.configs.error_handler import ProcessFailedError, ValidationDecorators
from cloudfront_spa.configs.plugin_cfg import (
    ENV_PREFIX,
    PLUGIN_NAME,
    OutputRef,
    SpaCfg,
    custom_properties_schema,
    load_spa_cfg,
)
from cloudfront_spa.runtime.bucket import empty_bucket
from cloudfront_spa.runtime.outputs import OutputResolver
from cloudfront_spa.runtime.process import STDERR, ProcessRunner

requires_config = ValidationDecorators.requires_config


class CloudfrontReactPlugin:
    """
    Lifecycle orchestrator for the SPA hosting stack.

    Holds the validated configuration and the stack output cache for the
    lifetime of the process.
    """

    BUILD_TOOL = "npm"
    SYNC_TOOL = "aws"

    commands = {
        "deploy": {
            "commands": {
                "react": {
                    "usage": "Build and upload react application.",
                    "lifecycle_events": ["build", "sync", "invalidate", "info"],
                    "options": {
                        "skip-build": {
                            "usage": "Skip CRA build step.",
                            "shortcut": "n",
                            "required": False,
                            "type": "boolean",
                        },
                        "dry-run": {
                            "usage": 'Pass --dryrun flag to "aws s3 sync".',
                            "required": False,
                            "type": "boolean",
                        },
                    },
                },
            },
        },
    }

    def __init__(self, serverless: Any, options: Optional[Mapping[str, Any]] = None) -> None:
        self.serverless = serverless
        self.options = dict(options or {})
        self.provider = serverless.get_provider("aws")
        self.config: Optional[SpaCfg] = None
        self.outputs = OutputResolver(self.provider, self.provider.naming.get_stack_name)
        self.runner = ProcessRunner(self._log_line)

        self.hooks = {
            "initialize": self.initialize,
            "deploy:react:build": self.build_app,
            "deploy:react:sync": self.upload_app,
            "deploy:react:invalidate": self.invalidate_app,
            "deploy:react:info": self.info,
            "before:package:finalize": self.cloudformation_template,
            "before:remove:remove": self.remove,
            "after:aws:info:displayStackOutputs": self.info,
        }

        serverless.config_schema_handler.define_custom_properties(custom_properties_schema())

    def _log(self, message: str) -> None:
        self.serverless.cli.log(message, PLUGIN_NAME)

    def _log_line(self, stream: str, line: str) -> None:
        if stream == STDERR:
            self.serverless.cli.warn(line, PLUGIN_NAME)
        else:
            self.serverless.cli.log(line, PLUGIN_NAME)

    def initialize(self) -> None:
        """
        Load and validate the plugin configuration.

        Raises:
            ConfigurationError: If ``custom`` or the plugin section is missing
                or invalid; no other hook can run afterwards
        """
        self.config = load_spa_cfg(self.serverless.service.custom)

    @requires_config()
    async def cloudformation_template(self) -> None:
        """Inject CloudFront and the S3 bucket into the compiled template."""
        augment_template(
            self.config,
            self.serverless.compiled_template,
            service_name=self.serverless.service.service,
            stage=self.serverless.service.provider.stage,
        )

    async def _build_environment(self) -> Dict[str, str]:
        env = {"PUBLIC_URL": self.config.public_url}
        for key, value in self.config.react_app.items():
            if isinstance(value, OutputRef):
                value = await self.outputs.resolve(value.output, value.stack_name)
            env[f"{ENV_PREFIX}{key}"] = value
        return env

    @requires_config()
    async def build_app(self) -> None:
        """
        Run ``npm run build`` in the application directory.

        Skipped entirely when a pre-built directory is configured, and the
        build command itself is skipped with ``--skip-build``.

        Raises:
            ProcessFailedError: If the build exits non-zero
        """
        if self.config.prebuilt:
            self._log("craBuildDirectory defined, skipping CRA build process")
            return

        self._log(f"Build output directory: {self.config.build_directory}")
        if self.options.get("skip-build"):
            return

        self._log("Starting CRA build")
        env = await self._build_environment()

        self._log("CRA environment variables:")
        for key, value in env.items():
            self._log(f"  {key}={value}")

        args = ["run", "build"]
        self._log(f"Executing: {self.BUILD_TOOL} {' '.join(args)}")
        code = await self.runner.run(
            self.BUILD_TOOL,
            args,
            cwd=self.config.cra_directory,
            env={**os.environ, **env},
        )
        if code != 0:
            raise ProcessFailedError(
                f"non-zero exit status from child build process: {code}",
                self.BUILD_TOOL,
                code,
            )

    @requires_config()
    async def upload_app(self) -> None:
        """
        Sync the build directory with the web root bucket.

        Raises:
            ProcessFailedError: If ``aws s3 sync`` exits non-zero
        """
        bucket_name = await self.outputs.resolve(BUCKET_NAME_OUTPUT)
        self._log(f"Starting upload to: {bucket_name}")

        args = ["s3", "sync", ".", f"s3://{bucket_name}", "--delete"]
        if self.options.get("dry-run"):
            args.append("--dryrun")

        self._log(f"Executing: {self.SYNC_TOOL} {' '.join(args)}")
        code = await self.runner.run(self.SYNC_TOOL, args, cwd=self.config.build_directory)
        if code != 0:
            raise ProcessFailedError(
                f"Upload failed with non-zero status code: {code}",
                self.SYNC_TOOL,
                code,
            )

    @requires_config()
    async def invalidate_app(self) -> Optional[str]:
        """
        Invalidate every path of the distribution.

        Returns:
            The invalidation id, or None under ``--dry-run``
        """
        if self.options.get("dry-run"):
            return None

        distribution_id = await self.outputs.resolve(DISTRIBUTION_ID_OUTPUT)
        self._log(f"Invalidating CloudFront distribution: {distribution_id}")

        result = await self.provider.request(
            "cloudfront",
            "create_invalidation",
            {
                "DistributionId": distribution_id,
                "InvalidationBatch": {
                    "CallerReference": str(int(time.time() * 1000)),
                    "Paths": {"Quantity": 1, "Items": ["/*"]},
                },
            },
        )
        invalidation_id = result["Invalidation"]["Id"]
        self._log(f"Created invalidation with id: {invalidation_id}")
        return invalidation_id

    @requires_config()
    async def remove(self) -> None:
        """Delete all objects from the web root bucket."""
        bucket_name = await self.outputs.resolve(BUCKET_NAME_OUTPUT)
        self._log(f"Deleting files from: {bucket_name}")
        deleted = await empty_bucket(self.provider, bucket_name)
        self._log(f"Deleted {deleted} objects from: {bucket_name}")

    @requires_config()
    def info(self) -> None:
        self.serverless.cli.console_log(f"CloudFront SPA: {self.config.public_url}")
