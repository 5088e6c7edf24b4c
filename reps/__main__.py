"""
Entry point for running reps as a module.

Usage:
    python -m reps review
    python -m reps list --due overdue
    python -m reps --help
"""
from .cli.main import main

if __name__ == "__main__":
    main()
