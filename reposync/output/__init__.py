# RepoSync Output Module
# Rich console output

from reposync.output.console import Console, create_console

__all__ = [
    "Console",
    "create_console",
]
