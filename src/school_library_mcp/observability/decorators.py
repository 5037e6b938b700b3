"""Decorators for tracing MCP components."""

import functools
from collections.abc import Callable
from datetime import datetime
from typing import Any

import logfire


def trace_tool(tool_name: str):
    """Decorator to trace MCP tool execution."""

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            with logfire.span(
                f"tool.execution.{tool_name}",
                tool_name=tool_name,
                tool_category=_categorize_tool(tool_name),
            ) as span:
                start_time = datetime.now()

                # Tool handlers take a single arguments dict
                arguments = kwargs.get("arguments")
                if arguments is None:
                    arguments = args[0] if args and isinstance(args[0], dict) else {}
                _add_attributes(span, "input", arguments)

                try:
                    result = await func(*args, **kwargs)

                    span.set_attribute("tool.success", not _is_error(result))
                    span.set_attribute(
                        "tool.duration_ms", (datetime.now() - start_time).total_seconds() * 1000
                    )
                    _add_tool_result_metrics(span, result)

                    return result

                except Exception as e:
                    span.set_attribute("tool.success", False)
                    span.set_attribute("tool.error", str(e))
                    raise

        return wrapper

    return decorator


def _categorize_tool(tool_name: str) -> str:
    """Categorize tools for better organization."""
    if "borrow" in tool_name or "return" in tool_name:
        return "circulation"
    if "book" in tool_name:
        return "catalog"
    if "student" in tool_name:
        return "roster"
    return "general"


def _is_error(result: Any) -> bool:
    return isinstance(result, dict) and bool(result.get("isError"))


def _add_attributes(span, prefix: str, data: dict):
    """Add scalar values to the span; pasted import text is recorded by length only."""
    for key, value in data.items():
        if key == "text" and isinstance(value, str):
            span.set_attribute(f"{prefix}.text_length", len(value))
        elif isinstance(value, str | int | float | bool):
            span.set_attribute(f"{prefix}.{key}", value)


def _add_tool_result_metrics(span, result: Any):
    """Record how many entities a bulk command created."""
    if not isinstance(result, dict):
        return
    data = result.get("data")
    if isinstance(data, dict) and "created" in data:
        span.set_attribute("result.created_count", data["created"])
