"""
tally — meeting action items from Granola notes.

Usage:
  python -m tally sync
  python -m tally list
  python -m tally doctor
"""
from .cli.app import app

if __name__ == "__main__":
    app()
