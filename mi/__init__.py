"""
mi - Mare installer command-line tool.

Registers the Mare Synchronos plugin repositories with Dalamud and installs
the plugin set.
"""

__all__ = []
