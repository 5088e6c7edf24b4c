"""Local file persistence."""

from .json_store import JsonTaskStore, PreferenceStore

__all__ = ["JsonTaskStore", "PreferenceStore"]
