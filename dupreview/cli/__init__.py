"""dupreview CLI Package.

Provides the command-line interface for reviewing near-duplicate notes.

Usage:
    python -m dupreview.cli scan Projects --vault ~/Vault
    python -m dupreview.cli pattern Untitled
    python -m dupreview.cli folders
    python -m dupreview.cli compare Projects 1
    python -m dupreview.cli cache status
    python -m dupreview.cli dismiss add "A.md" "A 1.md"
"""

import typer

from dupreview.cli.cache import cache_app, recent_command
from dupreview.cli.dismiss import dismiss_app
from dupreview.cli.folders import compare_command, folders_command
from dupreview.cli.pattern import pattern_command
from dupreview.cli.scan import scan_command

# Create main app
app = typer.Typer(help="dupreview: find and review near-duplicate Markdown notes")

# Register individual commands
app.command(name="scan")(scan_command)
app.command(name="pattern")(pattern_command)
app.command(name="folders")(folders_command)
app.command(name="compare")(compare_command)
app.command(name="recent")(recent_command)

# Register sub-applications
app.add_typer(cache_app, name="cache")
app.add_typer(dismiss_app, name="dismiss")

__all__ = [
    "app",
    "scan_command",
    "pattern_command",
    "folders_command",
    "compare_command",
    "recent_command",
    "cache_app",
    "dismiss_app",
]
