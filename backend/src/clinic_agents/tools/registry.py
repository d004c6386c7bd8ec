# pyright: reportMissingTypeStubs=false
"""
Tool registry for the chat layer.

TOOL_DEFINITIONS holds the JSON-schema function specs generated from the
function_tool declarations, in the shape the chat completion API expects.
execute_tool_call dispatches a model tool call by name to the matching
implementation.
"""

import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Union

from agents import FunctionTool, RunContextWrapper

from clinic_agents.context import ToolContext
from .cancel_appointment import cancel_appointment, cancel_appointment_impl
from .create_appointment import create_appointment, create_appointment_impl
from .get_available_slots import get_available_slots, get_available_slots_impl
from .get_clinic_info import get_clinic_info, get_clinic_info_impl
from .get_date_info import get_date_info, get_date_info_impl

logger = logging.getLogger(__name__)

ALL_TOOLS: List[FunctionTool] = [
    get_date_info,
    get_available_slots,
    create_appointment,
    cancel_appointment,
    get_clinic_info,
]

TOOL_DEFINITIONS: List[Dict[str, Any]] = [
    {
        "type": "function",
        "function": {
            "name": tool.name,
            "description": tool.description,
            "parameters": tool.params_json_schema,
        },
    }
    for tool in ALL_TOOLS
]

_IMPLEMENTATIONS: Dict[str, Callable[..., Awaitable[str]]] = {
    "get_date_info": get_date_info_impl,
    "get_available_slots": get_available_slots_impl,
    "create_appointment": create_appointment_impl,
    "cancel_appointment": cancel_appointment_impl,
    "get_clinic_info": get_clinic_info_impl,
}


async def execute_tool_call(
    context: ToolContext,
    name: str,
    arguments: Union[str, Mapping[str, Any], None]
) -> str:
    """
    Run one tool call from the model.

    Args:
        context: Conversation tool context
        name: Tool name chosen by the model
        arguments: JSON string or already-decoded mapping of arguments

    Returns:
        Tool result text to send back to the model. Unknown tools and
        malformed arguments produce an explanatory string instead of raising.
    """
    implementation = _IMPLEMENTATIONS.get(name)
    if implementation is None:
        logger.warning(f"Model requested unknown tool: {name}")
        return f"Unknown tool: {name}"

    if isinstance(arguments, str):
        try:
            decoded = json.loads(arguments) if arguments.strip() else {}
        except json.JSONDecodeError:
            logger.warning(f"Malformed arguments for tool {name}: {arguments!r}")
            return f"Invalid arguments for tool: {name}"
    else:
        decoded = dict(arguments or {})

    if not isinstance(decoded, dict):
        return f"Invalid arguments for tool: {name}"

    # Models sometimes send explicit nulls for optional fields
    kwargs = {key: value for key, value in decoded.items() if value is not None}

    logger.debug(f"🔧 Executing tool {name} with {sorted(kwargs)}")
    try:
        return await implementation(RunContextWrapper(context=context), **kwargs)
    except TypeError as e:
        logger.warning(f"Bad arguments for tool {name}: {e}")
        return f"Invalid arguments for tool: {name}"
