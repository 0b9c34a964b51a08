"""HTTP API for story search."""

from story_search.api.app import create_app, register_exception_handlers

__all__ = ["create_app", "register_exception_handlers"]
