"""
Test helpers for nvim_time_machine.

Scripted collaborators stand in for the terminal prompts and clock; the tree
helpers build and read back small directory trees.
"""

from pathlib import Path
from typing import Dict, Optional, Union

from .scripted import FixedClock, ScriptedInteraction


def write_file(path: Path, content: Union[str, bytes]) -> Path:
    """Create a file (and its parents) with the given content."""
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, str):
        content = content.encode()
    path.write_bytes(content)
    return path


def read_tree(root: Path) -> Dict[str, Optional[bytes]]:
    """Map of posix relative path -> bytes (None for directories)."""
    tree: Dict[str, Optional[bytes]] = {}
    for path in sorted(root.rglob("*")):
        rel = path.relative_to(root).as_posix()
        tree[rel] = None if path.is_dir() else path.read_bytes()
    return tree


__all__ = [
    'FixedClock',
    'ScriptedInteraction',
    'write_file',
    'read_tree',
]
