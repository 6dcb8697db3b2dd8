"""
Infrastructure module - logging and paths.
"""

from .data_paths import (
    get_project_root,
    get_data_root,
    get_db_path,
    get_log_dir,
    get_log_level,
    log_to_file_enabled,
    ensure_data_directories,
)

from .logging_config import setup_logging

__all__ = [
    # data_paths
    "get_project_root",
    "get_data_root",
    "get_db_path",
    "get_log_dir",
    "get_log_level",
    "log_to_file_enabled",
    "ensure_data_directories",
    # logging
    "setup_logging",
]
