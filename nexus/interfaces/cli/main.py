"""Entry point for the Nexus CLI.

Usage:
    python -m nexus.interfaces.cli.main

Or via installed entry point:
    nexus <command>
"""

from nexus.interfaces.cli import app


def main() -> None:
    """Run the Nexus CLI application."""
    app()


if __name__ == "__main__":
    main()
