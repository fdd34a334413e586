"""
Package entry point.

Allows running the application via:

    python -m smarthub

This simply forwards execution to smarthub.cli.main().
"""

from smarthub.cli import main

if __name__ == "__main__":
    main()
