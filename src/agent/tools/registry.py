"""
agent.tools.registry - Tool registration, discovery, and invocation.

Central registry that manages the workshop tools (the Tool Dispatcher) and
provides LangChain-compatible tool wrappers for binding to the chat model.
"""

from __future__ import annotations

import logging
from typing import Any

from langchain_core.tools import StructuredTool

from agent.tools.base import BaseTool, ToolResult, failure
from agent.tools.intents import INTENT_MODELS, parse_intent
from domain.exceptions import InvalidToolArgumentsError

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Manages tool registration and invocation."""

    def __init__(self):
        self._tools: dict[str, BaseTool] = {}

    def register(self, tool: BaseTool) -> None:
        """Register a tool by its name. Only declared tool names are accepted."""
        if tool.name not in INTENT_MODELS:
            raise ValueError(f"Tool '{tool.name}' has no declared intent schema")
        self._tools[tool.name] = tool
        logger.debug("Registered tool: %s", tool.name)

    def get(self, name: str) -> BaseTool:
        """Get a tool by name."""
        if name not in self._tools:
            raise KeyError(f"Tool '{name}' not registered")
        return self._tools[name]

    def names(self) -> list[str]:
        """Return all registered tool names."""
        return list(self._tools.keys())

    def invoke(self, name: str, args: dict[str, Any] | None = None) -> ToolResult:
        """Validate the argument bag and run the named tool.

        Never raises for model mistakes: an unknown tool name or arguments
        that fail validation come back as a failure payload the model can
        narrate.
        """
        if name not in self._tools:
            logger.warning("Model requested unknown tool: %s", name)
            return failure(f"Unknown tool: {name}")

        try:
            intent = parse_intent(name, args)
        except InvalidToolArgumentsError as exc:
            logger.warning("Rejected %s call: %s", name, exc.detail)
            return failure(str(exc))

        result = self._tools[name].execute(intent)
        logger.info("Tool %s executed (success=%s)", name, result.success)
        return result

    def to_langchain_tools(self) -> list[StructuredTool]:
        """Convert all registered tools to LangChain StructuredTools.

        Used for bind_tools(); the wrapped functions route back through
        invoke() so direct LangChain calls get the same validation.
        """
        lc_tools = []
        for tool in self._tools.values():

            def _make_func(tool_name: str):
                def func(**kwargs: Any) -> str:
                    return self.invoke(tool_name, kwargs).to_json()
                return func

            lc_tools.append(StructuredTool.from_function(
                func=_make_func(tool.name),
                name=tool.name,
                description=tool.description,
                args_schema=tool.get_schema(),
            ))
        return lc_tools
