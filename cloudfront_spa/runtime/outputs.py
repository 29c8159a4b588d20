"""
Stack output lookup with a per-process cache.
"""

from __future__ import annotations
import logging
from typing import Any, Callable, Dict, List, Optional

from cloudfront_spa.configs.error_handler import ResolutionError

logger = logging.getLogger(__name__)


class OutputResolver:
    """
    Resolves CloudFormation stack outputs by key.

    The output list of a stack is fetched once, on the first lookup for that
    stack name, and reused for the rest of the process. Outputs are never
    refreshed: a stack's outputs do not change once its deployment finished.
    Two concurrent first lookups of the same stack may both fetch; the last
    one to finish wins the cache slot.
    """

    def __init__(self, provider: Any, default_stack_name: Callable[[], str]) -> None:
        """
        Args:
            provider: Object exposing ``async request(service, method, params)``
            default_stack_name: Returns the current deployment's stack name
        """
        self.provider = provider
        self.default_stack_name = default_stack_name
        self._outputs: Dict[str, List[Dict[str, str]]] = {}

    async def _fetch(self, stack_name: str) -> List[Dict[str, str]]:
        logger.debug("Describing stack %s", stack_name)
        result = await self.provider.request(
            "cloudformation",
            "describe_stacks",
            {"StackName": stack_name},
        )
        stacks = result.get("Stacks") or []
        if not stacks or not stacks[0].get("Outputs"):
            raise ResolutionError(f"Stack {stack_name} has no outputs.")
        return stacks[0]["Outputs"]

    async def resolve(self, name: Optional[str], stack_name: Optional[str] = None) -> str:
        """
        Look up an output value.

        Args:
            name: Output key
            stack_name: Stack to read; defaults to the current deployment's stack

        Returns:
            The output's value

        Raises:
            ResolutionError: If name is empty, the stack has no outputs, or
                the key is not among them
        """
        if not stack_name:
            stack_name = self.default_stack_name()
        if not name:
            raise ResolutionError("name is not defined")

        if stack_name not in self._outputs:
            self._outputs[stack_name] = await self._fetch(stack_name)

        for output in self._outputs[stack_name]:
            if output.get("OutputKey") == name:
                return output["OutputValue"]
        raise ResolutionError(f"Output {name} not found in stack {stack_name}")
