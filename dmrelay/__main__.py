"""Entry point for running dmrelay as a module."""

from dmrelay.cli.commands import app

if __name__ == "__main__":
    app()
