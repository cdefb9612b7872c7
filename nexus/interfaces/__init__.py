"""Interfaces layer for Nexus.

This layer contains adapters for external interactions:
- CLI: Operator command-line interface using Typer
- API: REST API using FastAPI

The interfaces layer is responsible for:
- Accepting user input and validating it
- Calling application services
- Formatting output for the user
"""
