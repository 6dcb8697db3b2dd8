"""
Data path helpers for the task scheduler.

Directory structure:
data/
 └── tasks.sqlite              # SqliteJobStore database
logs/                          # Daily rotating log files

Environment Variables:
- TASK_QUEUE_DB_PATH: Override the job store database path (default: data/tasks.sqlite)
- TASK_QUEUE_LOG_DIR: Override the log directory (default: logs)
- TASK_QUEUE_LOG_TO_FILE: Write log files in addition to the console (default: true)
- TASK_QUEUE_LOG_LEVEL: Logging level (default: INFO)

Relative path overrides are resolved against the project root.
"""

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

# =============================================================================
# Environment Variable Helpers
# =============================================================================

def _get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean value from environment variable."""
    val = os.getenv(key, "").lower()
    if val in ("true", "1", "yes", "on"):
        return True
    elif val in ("false", "0", "no", "off"):
        return False
    return default


# =============================================================================
# Base Paths (relative to project root)
# =============================================================================

def get_project_root() -> Path:
    """
    Get the project root directory.

    File is at src/infra/data_paths.py, so project root is 2 levels up.
    """
    return Path(__file__).parent.parent.parent.resolve()


def get_data_root() -> Path:
    """Get the data root directory."""
    return get_project_root() / "data"


def _resolve(path: str) -> Path:
    """Absolute paths are kept; relative ones are taken from the project root."""
    path = Path(path)
    return path if path.is_absolute() else get_project_root() / path


def get_db_path() -> Path:
    """Get the job store database path."""
    override = os.getenv("TASK_QUEUE_DB_PATH")
    if override:
        return _resolve(override)
    return get_data_root() / "tasks.sqlite"


def get_log_dir() -> Path:
    """Get the log directory (default: logs/ under the project root)."""
    return _resolve(os.getenv("TASK_QUEUE_LOG_DIR", "logs"))


def log_to_file_enabled() -> bool:
    return _get_env_bool("TASK_QUEUE_LOG_TO_FILE", default=True)


def get_log_level() -> str:
    return os.getenv("TASK_QUEUE_LOG_LEVEL", "INFO")


def ensure_data_directories() -> None:
    """Create the directory holding the job store database."""
    db_dir = get_db_path().parent
    db_dir.mkdir(parents=True, exist_ok=True)
    logger.debug(f"[DataPaths] Ensured data directory: {db_dir}")
