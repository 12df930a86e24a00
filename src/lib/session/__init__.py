"""Interactive accept/reject/undo session over a corrected document."""
from __future__ import annotations

from .editor import InteractiveEditor
from .exceptions import SessionError

__all__ = ["InteractiveEditor", "SessionError"]
