"""
UI module - Rich console interface for capsules.

Provides:
- Capsule listing and restore reports
- Progress bars for create/extract
- Capsule selection and backup confirmation prompts
"""

from .console import ConsoleUI, format_size
from .interaction import InteractionManager
from .progress import CapsuleProgress

__all__ = [
    "ConsoleUI",
    "format_size",
    "InteractionManager",
    "CapsuleProgress",
]
