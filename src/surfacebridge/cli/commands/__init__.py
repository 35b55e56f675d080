"""CLI commands for surfacebridge."""

from .config import config
from .list import list_surfaces_command
from .render import render
from .run import run
from .schema import schema

__all__ = ["config", "list_surfaces_command", "render", "run", "schema"]
