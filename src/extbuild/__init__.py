"""
extbuild - asset build orchestrator for browser extension projects.

Provides a one-shot full build and a watch mode that rebuilds single
changed files with hot-reload status lines.
"""

__version__ = "0.1.0"
