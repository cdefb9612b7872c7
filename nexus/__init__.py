"""Nexus - workflow engine for collaborative student projects."""

__version__ = "0.1.0"
