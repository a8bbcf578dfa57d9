"""Manifest-driven plugins that contribute shell commands and hooks."""

from envsnap.plugins.registry import PluginError, PluginManifest, PluginRegistry

__all__ = ["PluginError", "PluginManifest", "PluginRegistry"]
