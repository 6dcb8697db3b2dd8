"""
Scheduler configuration.

Holds the name prefix applied to every task name, the default group and
the label used in diagnostic log lines. Each DedupScheduler owns one
SchedulerConfig; reconfiguring it is not synchronized with in-flight
scheduling calls, so configure once during startup.

Environment Variables (SchedulerConfig.from_env):
- TASK_QUEUE_NAME_PREFIX: Name prefix (default: queue_)
- TASK_QUEUE_DEFAULT_GROUP: Default group (default: queue_default)
- TASK_QUEUE_LOG_PREFIX: Diagnostic label (default: Queue)
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .sanitize import sanitize_key, sanitize_text_field


DEFAULT_NAME_PREFIX = "queue_"
DEFAULT_GROUP = "queue_default"
DEFAULT_LOG_PREFIX = "Queue"


@dataclass
class SchedulerConfig:
    """
    Mutable scheduler configuration.

    Fields are canonicalized on construction and on every configure().
    """

    name_prefix: str = DEFAULT_NAME_PREFIX
    default_group: str = DEFAULT_GROUP
    log_prefix: str = DEFAULT_LOG_PREFIX

    def __post_init__(self):
        self.configure(self.name_prefix, self.default_group, self.log_prefix)

    def configure(
        self,
        name_prefix: str = DEFAULT_NAME_PREFIX,
        default_group: str = DEFAULT_GROUP,
        log_prefix: str = DEFAULT_LOG_PREFIX,
    ) -> None:
        """
        Overwrite all three fields.

        Prefix and group are reduced to key tokens; the label is
        stripped of tags and extra whitespace.
        """
        self.name_prefix = sanitize_key(name_prefix)
        self.default_group = sanitize_key(default_group)
        self.log_prefix = sanitize_text_field(log_prefix)

    def get_name_prefix(self) -> str:
        return self.name_prefix

    def get_default_group(self) -> str:
        return self.default_group

    def get_log_prefix(self) -> str:
        return self.log_prefix

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "SchedulerConfig":
        """
        Build a config from environment variables (and .env, if present).

        Args:
            dotenv_path: Explicit .env file; defaults to python-dotenv's lookup

        Returns:
            Configured SchedulerConfig
        """
        load_dotenv(dotenv_path)

        config = cls()
        config.configure(
            name_prefix=os.getenv("TASK_QUEUE_NAME_PREFIX", DEFAULT_NAME_PREFIX),
            default_group=os.getenv("TASK_QUEUE_DEFAULT_GROUP", DEFAULT_GROUP),
            log_prefix=os.getenv("TASK_QUEUE_LOG_PREFIX", DEFAULT_LOG_PREFIX),
        )
        return config
