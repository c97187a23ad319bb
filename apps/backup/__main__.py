"""
Backup Module Entry Point

Allows execution via: python -m apps.backup

Delegates to scheduler for all execution modes (scheduled and RUN_ONCE).
"""

from apps.backup.scheduler import main

if __name__ == "__main__":
    main()
