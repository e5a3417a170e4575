"""Centralized prompt and instruction management for the MCP tool.

Tool descriptions and server instructions live in JSON files next to this module
so their wording can change without touching the server registration code.

Files:
    - <tool_name>.json: ``description``, ``usage`` and ``examples`` for a tool
    - system_instructions.json: ``server_instructions`` sent on initialize

Usage:
    from mongo_mcp.mcp_server.tool_prompts import get_tool_prompt
    prompt = get_tool_prompt("execute_mongo_operation")
"""

import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

# Directory containing prompt files
PROMPTS_DIR = Path(__file__).parent


class ToolPrompt:
    """Structured representation of a tool prompt."""

    def __init__(self, name: str, description: str, usage: str, examples: list[str]):
        self.name = name
        self.description = description
        self.usage = usage
        self.examples = examples

    def to_docstring(self) -> str:
        """Convert the prompt to a properly formatted docstring."""
        examples_text = "\n".join(f"- {example}" for example in self.examples)
        return f"""{self.description}

{self.usage}

Examples:
{examples_text}"""

    @classmethod
    def from_dict(cls, name: str, data: dict[str, Any]) -> "ToolPrompt":
        """Create a ToolPrompt from dictionary data."""
        return cls(
            name=name,
            description=data["description"],
            usage=data["usage"],
            examples=data.get("examples", []),
        )


# Cache for loaded prompts
_prompts_cache: dict[str, ToolPrompt] = {}
# Cache for system instructions
_system_instructions_cache: dict[str, Any] | None = None


def get_tool_prompt(tool_name: str) -> str | None:
    """Get the formatted prompt/docstring for a tool.

    Args:
        tool_name: Name of the tool (e.g., "execute_mongo_operation")

    Returns:
        Formatted docstring for the tool, or None if not found
    """
    if tool_name in _prompts_cache:
        return _prompts_cache[tool_name].to_docstring()

    prompt_file = PROMPTS_DIR / f"{tool_name}.json"
    if not prompt_file.exists():
        logger.warning(f"Prompt file not found: {prompt_file}")
        return None

    try:
        with open(prompt_file, encoding="utf-8") as f:
            data = json.load(f)

        prompt = ToolPrompt.from_dict(tool_name, data)
        _prompts_cache[tool_name] = prompt
        return prompt.to_docstring()

    except (OSError, ValueError, KeyError) as e:
        logger.error(f"Error loading prompt for {tool_name}: {e}")
        return None


def get_system_instructions() -> str | None:
    """Get the system instructions for the MCP server.

    Returns:
        System instructions string, or None if not found
    """
    global _system_instructions_cache

    if _system_instructions_cache is not None:
        return _system_instructions_cache.get("server_instructions")

    instructions_file = PROMPTS_DIR / "system_instructions.json"
    if not instructions_file.exists():
        logger.warning(f"System instructions file not found: {instructions_file}")
        return None

    try:
        with open(instructions_file, encoding="utf-8") as f:
            _system_instructions_cache = json.load(f)

        return _system_instructions_cache.get("server_instructions")

    except (OSError, ValueError) as e:
        logger.error(f"Error loading system instructions: {e}")
        return None


def reload_prompts() -> None:
    """Clear both caches so the next lookup reads from disk. Useful for development."""
    global _system_instructions_cache
    _prompts_cache.clear()
    _system_instructions_cache = None
    logger.info("Prompt caches cleared")
