from __future__ import annotations
import json
import os
import re
from pathlib import Path
from typing import Any, Mapping, Optional

from cloudfront_spa.configs.error_handler import ConfigurationError, ErrorHandler
from cloudfront_spa.configs.service_cfg import (
    DEFAULT_REGION,
    DEFAULT_STAGE,
    ServiceCfg,
    service_cfg_from_dict,
)

_VAR = re.compile(r"\$\{([A-Za-z0-9_]+)\}")


class ConfigManager:
    """
    Loads the deployment file for the CloudFront SPA host.

    Handles:
    - Locating the deployment file (``deploy.json`` by default)
    - JSON loading with ``${VAR}`` placeholder expansion
    - Stage/region overrides from the command line
    """

    DEFAULT_FILE = "deploy.json"

    def __init__(
            self,
            path: str = DEFAULT_FILE,
            environ: Optional[Mapping[str, str]] = None
        ):
        self.path = Path(path)
        self.environ = dict(os.environ if environ is None else environ)

    def expand_placeholders(self, obj: Any, vars: Mapping[str, str]) -> Any:
        """
        Recursively expand ${VAR} placeholders in strings, lists, and dicts.

        Unknown placeholders are left untouched.

        Args:
            obj: Object to expand placeholders in
            vars: Variables to substitute

        Returns:
            Object with placeholders expanded
        """
        if isinstance(obj, str):
            return _VAR.sub(lambda m: str(vars.get(m.group(1), m.group(0))), obj)
        if isinstance(obj, list):
            return [self.expand_placeholders(x, vars) for x in obj]
        if isinstance(obj, dict):
            return {k: self.expand_placeholders(v, vars) for k, v in obj.items()}
        return obj

    def load_json(self) -> dict:
        """
        Load and parse the deployment file without expansion.

        Raises:
            ConfigurationError: If the file is missing or not valid JSON
        """
        ErrorHandler.validate_file_exists(self.path, "Deployment file")
        with open(self.path, "r", encoding="utf-8") as f:
            try:
                return json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigurationError(f"Deployment file {self.path} is not valid JSON: {e}") from e

    def load_service(
            self,
            stage: Optional[str] = None,
            region: Optional[str] = None
        ) -> ServiceCfg:
        """
        Load the deployment file into a validated ServiceCfg.

        Placeholders may reference ``Service``, ``Stage``, ``Region`` or any
        environment variable.

        Args:
            stage: Stage override
            region: Region override

        Returns:
            Validated service configuration
        """
        raw = self.load_json()
        ErrorHandler.validate_type(raw, dict, "(root)", "Deployment file")
        provider = raw.get("provider") if isinstance(raw.get("provider"), dict) else {}

        vars = dict(self.environ)
        vars.update({
            "Service": str(raw.get("service", "")),
            "Stage": stage or provider.get("stage", DEFAULT_STAGE),
            "Region": region or provider.get("region", DEFAULT_REGION),
        })
        return service_cfg_from_dict(
            self.expand_placeholders(raw, vars),
            stage=stage,
            region=region,
        )
