"""Command-line interface for institution-abac.

Provides commands for initializing configuration, inspecting rule files
and evaluating access requests.
"""

from .main import cli, main

__all__ = ["cli", "main"]
