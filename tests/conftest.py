from __future__ import annotations
import logging
from types import SimpleNamespace
from typing import Any, Dict, List, Optional

import pytest

from cloudfront_spa.configs.service_cfg import ProviderCfg, ServiceCfg
from cloudfront_spa.host import Cli, Serverless
from cloudfront_spa.plugin import CloudfrontReactPlugin

CERT_ARN = "arn:aws:acm:us-east-1:123456789012:certificate/0f0e7c7e-1111-2222-3333-444455556666"


class FakeProvider:
    """Records requests and replays canned responses keyed by (service, method)."""

    name = "aws"

    def __init__(self, responses: Optional[Dict[tuple, Any]] = None, stack_name: str = "site-dev"):
        self.responses = dict(responses or {})
        self.calls: List[tuple] = []
        self.naming = SimpleNamespace(get_stack_name=lambda: stack_name)
        self.waited: List[str] = []

    async def request(self, service: str, method: str, params: Optional[dict] = None):
        self.calls.append((service, method, params))
        response = self.responses[(service, method)]
        if callable(response):
            return response(params)
        if isinstance(response, list):
            return response.pop(0)
        return response

    def count(self, service: str, method: str) -> int:
        return sum(1 for s, m, _ in self.calls if (s, m) == (service, method))

    def params(self, service: str, method: str) -> List[dict]:
        return [p for s, m, p in self.calls if (s, m) == (service, method)]

    def client(self, service_name: str):
        provider = self

        class _Waiter:
            def wait(self, StackName):
                provider.waited.append(StackName)

        return SimpleNamespace(get_waiter=lambda name: _Waiter())


class RecordingCli(Cli):
    def __init__(self):
        super().__init__(logging.getLogger("tests.cli"))
        self.lines: List[tuple] = []
        self.console: List[str] = []

    def log(self, message, entity="Serverless"):
        self.lines.append(("info", entity, message))

    def warn(self, message, entity="Serverless"):
        self.lines.append(("warning", entity, message))

    def console_log(self, message):
        self.console.append(message)

    def messages(self, level: Optional[str] = None) -> List[str]:
        return [m for lvl, _, m in self.lines if level is None or lvl == level]


class FakeRunner:
    def __init__(self, status: int = 0):
        self.status = status
        self.calls: List[SimpleNamespace] = []

    async def run(self, command, args, *, cwd=None, env=None):
        self.calls.append(SimpleNamespace(command=command, args=list(args), cwd=cwd, env=env))
        return self.status


def stack_outputs(**outputs: str) -> dict:
    return {
        "Stacks": [
            {"Outputs": [{"OutputKey": k, "OutputValue": v} for k, v in outputs.items()]}
        ]
    }


@pytest.fixture
def site_section() -> dict:
    return {
        "domainName": "example.com",
        "hostedZoneId": "Z1",
        "certificateArn": CERT_ARN,
        "craBuildDirectory": "./dist",
    }


@pytest.fixture
def source_section() -> dict:
    return {
        "domainName": "app.example.com",
        "hostedZoneId": "Z1",
        "certificateArn": CERT_ARN,
        "craDirectory": "frontend",
    }


@pytest.fixture
def make_service():
    def factory(section: Optional[dict], resources: Optional[dict] = None) -> ServiceCfg:
        custom = {"CloudfrontReactPlugin": section} if section is not None else {}
        return ServiceCfg(
            service="site",
            provider=ProviderCfg(stage="dev"),
            custom=custom,
            resources=resources or {},
        )
    return factory


@pytest.fixture
def make_plugin(make_service):
    """Build an initialized plugin wired to fakes; returns (plugin, provider, cli, runner)."""
    def factory(section, *, options=None, responses=None, status=0, initialize=True):
        provider = FakeProvider(responses)
        cli = RecordingCli()
        serverless = Serverless(make_service(section), provider, cli)
        plugin = serverless.add_plugin(CloudfrontReactPlugin, options or {})
        runner = FakeRunner(status)
        plugin.runner = runner
        if initialize:
            plugin.hooks["initialize"]()
        return SimpleNamespace(plugin=plugin, provider=provider, cli=cli, runner=runner, serverless=serverless)
    return factory
