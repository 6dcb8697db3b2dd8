"""
Scheduler state management for API integration.

Provides singleton access to the DedupScheduler instance.
Initialized during FastAPI lifespan.

Usage:
    from ._scheduler_state import get_dedup_scheduler, init_dedup_scheduler

    # In lifespan:
    init_dedup_scheduler(db_path)

    # In routers:
    scheduler = get_dedup_scheduler()
"""

import logging
from pathlib import Path
from typing import Optional

from src.scheduler import DedupScheduler, SchedulerConfig, SqliteJobStore


logger = logging.getLogger(__name__)

# Global scheduler instance
_dedup_scheduler: Optional[DedupScheduler] = None


def init_dedup_scheduler(
    db_path: str | Path,
    config: Optional[SchedulerConfig] = None,
) -> DedupScheduler:
    """
    Initialize the scheduler singleton.

    Args:
        db_path: Path to the SQLite job store
        config: Scheduler configuration (default: read from environment)

    Returns:
        Initialized DedupScheduler
    """
    global _dedup_scheduler

    if _dedup_scheduler is not None:
        return _dedup_scheduler

    store = SqliteJobStore(db_path)
    _dedup_scheduler = DedupScheduler(
        store=store,
        config=config if config is not None else SchedulerConfig.from_env(),
    )
    logger.info(f"Scheduler initialized with job store at {db_path}")

    return _dedup_scheduler


def get_dedup_scheduler() -> DedupScheduler:
    """
    Get the scheduler singleton.

    Raises:
        RuntimeError: If the scheduler has not been initialized
    """
    if _dedup_scheduler is None:
        raise RuntimeError(
            "Scheduler not initialized. "
            "Ensure init_dedup_scheduler() is called during startup."
        )

    return _dedup_scheduler


def shutdown_dedup_scheduler() -> None:
    """Drop the scheduler singleton (called during FastAPI lifespan shutdown)."""
    global _dedup_scheduler
    _dedup_scheduler = None
