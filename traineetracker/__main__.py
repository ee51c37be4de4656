"""
Package entry point.

Allows running the application via:

    python -m traineetracker

This simply forwards execution to traineetracker.cli.main().
"""

from traineetracker.cli import main

if __name__ == "__main__":
    main()
