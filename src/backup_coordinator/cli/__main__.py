"""CLI entry point for backup_coordinator.cli module.

Enables execution via: python -m backup_coordinator.cli
"""

from backup_coordinator.cli.admin import main

if __name__ == "__main__":
    raise SystemExit(main())
