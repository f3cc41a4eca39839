"""
Package entry point.

Allows running the application via:

    python -m deadlinesync

This simply forwards execution to deadlinesync.cli.main().
"""

from deadlinesync.cli import main

if __name__ == "__main__":
    main()
