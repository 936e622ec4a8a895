"""UI layer -- Rich dashboard and output formatters."""

from .dashboard import (
    TransferProgressBar,
    console,
    print_error,
    print_event,
    print_final_results,
    print_header,
)
from .output import create_result_json, format_text_result

__all__ = [
    "TransferProgressBar",
    "console",
    "create_result_json",
    "format_text_result",
    "print_error",
    "print_event",
    "print_final_results",
    "print_header",
]
