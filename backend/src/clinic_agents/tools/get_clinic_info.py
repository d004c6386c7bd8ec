# pyright: reportMissingTypeStubs=false
"""Tool for answering questions about opening hours and closed days."""

import logging

from agents import function_tool, RunContextWrapper

from clinic_agents.context import ToolContext
from services.settings_service import describe_clinic

logger = logging.getLogger(__name__)


async def get_clinic_info_impl(wrapper: RunContextWrapper[ToolContext]) -> str:
    context = wrapper.context
    config = await context.engine.settings.get_clinic_settings(context.spreadsheet_id)
    return describe_clinic(config)


@function_tool
async def get_clinic_info(wrapper: RunContextWrapper[ToolContext]) -> str:
    """Get the clinic's basic information (opening hours, breaks, closed days). Use for questions like "何時までやってますか？"."""
    return await get_clinic_info_impl(wrapper)
