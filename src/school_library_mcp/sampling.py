"""
MCP sampling helpers for the School Library MCP Server.

Sampling lets the server borrow the connected client's LLM. The library uses
it to turn text pasted from a spreadsheet into books or students; see
``importers.text_import.SamplingTextImporter``.

Not every client can sample, so callers check ``client_supports_sampling``
first and fall back to a deterministic parser when it returns False.
"""

import logging

from fastmcp import Context
from mcp.types import (
    ModelHint,
    ModelPreferences,
    SamplingMessage,
    TextContent,
)

logger = logging.getLogger(__name__)


def client_supports_sampling(context: Context | None) -> bool:
    """True if the client behind ``context`` declared the sampling capability."""
    if context is None:
        return False
    try:
        capabilities = context.request_context.session.client_capabilities
    except (AttributeError, ValueError):
        # No active request (e.g. the context was built outside a tool call)
        return False
    return bool(capabilities and capabilities.sampling)


async def request_ai_generation(
    context: Context,
    prompt: str,
    system_prompt: str | None = None,
    max_tokens: int = 2000,
    temperature: float = 0.0,
    intelligence_priority: float = 0.5,
    speed_priority: float = 0.7,
) -> str | None:
    """
    Request generated text from the MCP client using sampling.

    Args:
        context: The FastMCP request context (provides access to session)
        prompt: The user prompt to send to the LLM
        system_prompt: Optional system prompt to guide the LLM's behavior
        max_tokens: Maximum tokens to generate
        temperature: Controls randomness; extraction wants 0.0
        intelligence_priority: How important is model capability (0.0-1.0)
        speed_priority: How important is fast response (0.0-1.0)

    Returns:
        The generated text, or None if the client cannot sample or the
        request failed
    """
    if not client_supports_sampling(context):
        logger.info("Client does not support sampling - returning None")
        return None

    try:
        messages = [
            SamplingMessage(
                role="user",
                content=TextContent(type="text", text=prompt),
            )
        ]

        model_preferences = ModelPreferences(
            hints=[ModelHint(name="claude")],
            intelligencePriority=intelligence_priority,
            speedPriority=speed_priority,
            costPriority=1.0 - (intelligence_priority + speed_priority) / 2,
        )

        logger.debug("Sending sampling request with prompt: %s...", prompt[:100])

        result = await context.request_context.session.create_message(
            messages,
            max_tokens=max_tokens,
            system_prompt=system_prompt,
            temperature=temperature,
            model_preferences=model_preferences,
        )

        if result and result.content and result.content.type == "text":
            generated_text = result.content.text
            logger.info("Sampling returned %d characters", len(generated_text))
            return generated_text
        logger.warning("Sampling returned unexpected content type")
        return None

    except Exception:
        # Timeouts, user rejection and client errors all end here
        logger.exception("Sampling request failed")
        return None
