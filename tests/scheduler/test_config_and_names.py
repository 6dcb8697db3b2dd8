"""
Configuration and name normalization tests.

- SchedulerConfig.configure canonicalizes its fields
- normalize_name applies the prefix exactly once
- The prefix is read on every call (never cached)
"""

import os

import pytest

from src.scheduler import DedupScheduler, SchedulerConfig
from src.scheduler.sanitize import sanitize_key, sanitize_text_field


class TestSanitize:
    def test_sanitize_key_lowercases_and_strips(self):
        assert sanitize_key("My Hook!") == "myhook"
        assert sanitize_key("send-mail_v2") == "send-mail_v2"

    def test_sanitize_key_empty(self):
        assert sanitize_key("") == ""
        assert sanitize_key("***") == ""

    def test_sanitize_text_field(self):
        assert sanitize_text_field("  <b>My</b>\tApp\n Queue  ") == "My App Queue"


class TestSchedulerConfig:
    def test_defaults(self):
        config = SchedulerConfig()

        assert config.get_name_prefix() == "queue_"
        assert config.get_default_group() == "queue_default"
        assert config.get_log_prefix() == "Queue"

    def test_configure_canonicalizes(self):
        config = SchedulerConfig()
        config.configure("App_", "Reports Group", "  My <i>App</i> ")

        assert config.name_prefix == "app_"
        assert config.default_group == "reportsgroup"
        assert config.log_prefix == "My App"

    def test_constructor_canonicalizes(self):
        config = SchedulerConfig(
            name_prefix="My App_",
            default_group="Nightly Jobs",
            log_prefix=" <b>My</b>\nApp ",
        )

        assert config.get_name_prefix() == "myapp_"
        assert config.get_default_group() == "nightlyjobs"
        assert config.get_log_prefix() == "My App"

    def test_constructor_prefix_matches_stored_names(self, store):
        scheduler = DedupScheduler(store, config=SchedulerConfig(name_prefix="My App_"))

        task_id = scheduler.schedule_once("Sync")

        assert store.fetch(task_id).name == "myapp_sync"
        assert scheduler.full_name("myapp_sync") == "myapp_sync"

    def test_configure_overwrites_unconditionally(self):
        config = SchedulerConfig()
        config.configure("first_", "g1", "One")
        config.configure()

        assert config.name_prefix == "queue_"
        assert config.default_group == "queue_default"
        assert config.log_prefix == "Queue"

    def test_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("TASK_QUEUE_NAME_PREFIX", "env_")
        monkeypatch.setenv("TASK_QUEUE_DEFAULT_GROUP", "env_group")
        monkeypatch.delenv("TASK_QUEUE_LOG_PREFIX", raising=False)

        config = SchedulerConfig.from_env(dotenv_path=str(tmp_path / "missing.env"))

        assert config.name_prefix == "env_"
        assert config.default_group == "env_group"
        assert config.log_prefix == "Queue"

    def test_from_env_reads_dotenv_file(self, monkeypatch, tmp_path):
        monkeypatch.delenv("TASK_QUEUE_NAME_PREFIX", raising=False)
        env_file = tmp_path / ".env"
        env_file.write_text("TASK_QUEUE_NAME_PREFIX=dot_\n")

        try:
            config = SchedulerConfig.from_env(dotenv_path=str(env_file))
        finally:
            os.environ.pop("TASK_QUEUE_NAME_PREFIX", None)

        assert config.name_prefix == "dot_"


class TestNormalizeName:
    @pytest.fixture
    def names(self, mock_store) -> DedupScheduler:
        return DedupScheduler(mock_store)

    def test_adds_prefix(self, names):
        assert names.normalize_name("sync") == "queue_sync"

    def test_prefix_applied_once(self, names):
        assert names.normalize_name("queue_sync") == "queue_sync"
        assert names.normalize_name("queue_queue_queue_sync") == "queue_sync"

    @pytest.mark.parametrize("raw", ["sync", "queue_sync", "queue_queue_sync", "queue_", "x_queue_"])
    def test_idempotent(self, names, raw):
        once = names.normalize_name(raw)

        assert names.normalize_name(once) == once
        assert names.normalize_name(names.normalize_name(once)) == once

    def test_empty_name_unchanged(self, names):
        assert names.normalize_name("") == ""

    def test_empty_prefix_returns_raw(self, mock_store):
        config = SchedulerConfig()
        config.configure(name_prefix="")
        scheduler = DedupScheduler(mock_store, config=config)

        assert scheduler.normalize_name("queue_sync") == "queue_sync"

    def test_prefix_read_on_every_call(self, mock_store):
        config = SchedulerConfig()
        scheduler = DedupScheduler(mock_store, config=config)
        assert scheduler.normalize_name("sync") == "queue_sync"

        config.configure(name_prefix="app_")

        assert scheduler.normalize_name("sync") == "app_sync"

    def test_independent_schedulers(self, mock_store):
        a = DedupScheduler(mock_store, config=SchedulerConfig(name_prefix="a_"))
        b = DedupScheduler(mock_store, config=SchedulerConfig(name_prefix="b_"))

        assert a.normalize_name("sync") == "a_sync"
        assert b.normalize_name("sync") == "b_sync"
