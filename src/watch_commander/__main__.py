"""
Run the Watch Commander console.

Usage:
    python -m watch_commander [--save-dir saves] [--backend openai] [--debug]
"""

from .interface.cli import main

if __name__ == "__main__":
    main()
