"""CLI entry point.

Allows running the CLI as a module: python -m dupreview.cli
"""

from dupreview.cli import app

if __name__ == "__main__":
    app()
