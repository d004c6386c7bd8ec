# Export tool functions for agent usage
from .get_date_info import get_date_info
from .get_available_slots import get_available_slots
from .create_appointment import create_appointment
from .cancel_appointment import cancel_appointment
from .get_clinic_info import get_clinic_info
from .registry import ALL_TOOLS, TOOL_DEFINITIONS, execute_tool_call

# Export implementation functions for testing
from .get_date_info import get_date_info_impl
from .get_available_slots import get_available_slots_impl
from .create_appointment import create_appointment_impl
from .cancel_appointment import cancel_appointment_impl
from .get_clinic_info import get_clinic_info_impl

__all__ = [
    # Tool functions
    "get_date_info",
    "get_available_slots",
    "create_appointment",
    "cancel_appointment",
    "get_clinic_info",
    "ALL_TOOLS",
    "TOOL_DEFINITIONS",
    "execute_tool_call",
    # Implementation functions for testing
    "get_date_info_impl",
    "get_available_slots_impl",
    "create_appointment_impl",
    "cancel_appointment_impl",
    "get_clinic_info_impl",
]
