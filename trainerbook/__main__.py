"""
Entry point for ``python -m trainerbook``.
"""

from .cli.app import app

if __name__ == "__main__":
    app()
