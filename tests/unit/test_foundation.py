"""
Foundation Tests for Gator
==========================

Test suite for core foundation components including database,
configuration, logging, and validation systems.
"""

import json
import logging
import pytest
import sqlite3

from gator.database.schema import DatabaseSchema
from gator.database.connection import DatabaseConnection
from gator.database.models import Feed, Post, User, to_db_timestamp
from gator.config.settings import GatorSettings, load_settings, LogLevel
from gator.config.user_config import UserConfig
from gator.utils.logging import (
    StructuredFormatter,
    setup_logger,
    get_logger_for_component,
    PerformanceLogger,
)
from gator.utils.exceptions import (
    GatorError,
    ConfigurationError,
    DatabaseError,
    ErrorCode,
    HTTPError,
    ValidationError,
    get_user_friendly_message,
)
from gator.utils.validators import URLValidator, validate_name, parse_interval


class TestDatabaseSchema:
    """Test database schema creation and validation."""

    def test_create_tables(self, tmp_path):
        db_path = tmp_path / "test.db"
        DatabaseSchema(str(db_path)).create_tables()

        with sqlite3.connect(db_path) as conn:
            cursor = conn.execute(
                """
                SELECT name FROM sqlite_master
                WHERE type='table' AND name NOT LIKE 'sqlite_%'
            """
            )
            tables = {row[0] for row in cursor.fetchall()}

        assert tables == {"users", "feeds", "feed_follows", "posts"}

    def test_create_tables_is_idempotent(self, tmp_path):
        schema = DatabaseSchema(str(tmp_path / "test.db"))
        schema.create_tables()
        schema.create_tables()

        assert schema.verify_schema()

    def test_verify_schema(self, tmp_path):
        schema = DatabaseSchema(str(tmp_path / "test.db"))

        assert not schema.verify_schema()

        schema.create_tables()
        assert schema.verify_schema()

    def test_drop_tables(self, tmp_path):
        schema = DatabaseSchema(str(tmp_path / "test.db"))
        schema.create_tables()

        schema.drop_tables()

        assert not schema.verify_schema()

    def test_creates_parent_directory(self, tmp_path):
        db_path = tmp_path / "nested" / "dir" / "test.db"
        DatabaseSchema(str(db_path)).create_tables()

        assert db_path.exists()

    def test_foreign_key_constraints(self, tmp_path):
        schema = DatabaseSchema(str(tmp_path / "test.db"))
        schema.create_tables()

        conn = schema.get_connection()
        try:
            with pytest.raises(sqlite3.IntegrityError):
                conn.execute(
                    """
                    INSERT INTO feeds (id, name, url, user_id, created_at, updated_at)
                    VALUES ('f1', 'Alpha', 'https://alpha.example.com/rss', 'missing', 'x', 'x')
                """
                )
        finally:
            conn.close()


class TestDatabaseConnection:
    """Test the pooled connection manager."""

    def test_connection_reuse(self, temp_db):
        db = DatabaseConnection(temp_db, pool_size=1)
        try:
            with db.get_connection() as first:
                first_id = id(first)
            with db.get_connection() as second:
                assert id(second) == first_id
        finally:
            db.close_all_connections()

    def test_foreign_keys_enabled(self, db_connection):
        row = db_connection.execute_one("PRAGMA foreign_keys")
        assert row[0] == 1

    def test_transaction_rolls_back(self, db_connection):
        with pytest.raises(RuntimeError):
            with db_connection.transaction() as conn:
                conn.execute(
                    "INSERT INTO users (id, name, created_at, updated_at) VALUES ('u1', 'alice', 'x', 'x')"
                )
                raise RuntimeError("abort")

        assert db_connection.execute_one("SELECT * FROM users WHERE id = 'u1'") is None

    def test_execute_update_returns_rowcount(self, db_connection):
        count = db_connection.execute_update(
            "INSERT INTO users (id, name, created_at, updated_at) VALUES ('u1', 'alice', 'x', 'x')"
        )
        assert count == 1

    def test_database_info(self, db_connection, sample_feeds):
        info = db_connection.get_database_info()

        assert info["table_counts"]["users"] == 1
        assert info["table_counts"]["feeds"] == 2
        assert info["table_counts"]["feed_follows"] == 2
        assert info["table_counts"]["posts"] == 0


class TestDatabaseModels:
    """Test pydantic row models."""

    def test_user_name_stripped(self):
        assert User(name="  alice ").name == "alice"

    def test_user_blank_name_rejected(self):
        with pytest.raises(ValueError):
            User(name="   ")

    def test_ids_are_unique(self):
        assert User(name="a").id != User(name="b").id

    def test_feed_defaults(self):
        feed = Feed(name="Alpha", url="https://alpha.example.com/rss", user_id="u1")
        assert feed.last_fetched_at is None

    def test_post_requires_url(self, t0):
        with pytest.raises(ValueError):
            Post(feed_id="f1", url="", published_at=t0)

    def test_db_timestamps_sort_chronologically(self, t0):
        from datetime import timedelta, timezone, datetime

        earlier = to_db_timestamp(t0)
        later = to_db_timestamp(t0 + timedelta(microseconds=1))
        naive = to_db_timestamp(datetime(2024, 9, 5, 12, 0, 0))
        offset = to_db_timestamp(
            datetime(2024, 9, 5, 14, 0, 0, tzinfo=timezone(timedelta(hours=2)))
        )

        assert earlier < later
        assert len(earlier) == len(later)
        assert naive == earlier == offset


class TestConfiguration:
    """Test settings and the per-user config file."""

    def test_default_settings(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        settings = GatorSettings()

        assert settings.database.path == "data/gator.db"
        assert settings.polling.request_timeout == 10.0
        assert settings.polling.browse_limit == 2
        assert settings.user_config_path == "~/.gatorconfig.json"

    def test_environment_override(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("GATOR_POLLING__REQUEST_TIMEOUT", "2.5")
        monkeypatch.setenv("GATOR_LOGGING__LEVEL", "DEBUG")

        settings = GatorSettings()

        assert settings.polling.request_timeout == 2.5
        assert settings.logging.level == LogLevel.DEBUG

    def test_invalid_timeout_rejected(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        with pytest.raises(ConfigurationError):
            load_settings(polling={"request_timeout": 0})

    def test_load_settings_creates_directories(self, test_settings, tmp_path):
        assert (tmp_path / "data").is_dir()
        assert test_settings.database.pool_size == 2

    def test_effective_log_level(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        assert GatorSettings(debug=True).get_effective_log_level() == "DEBUG"
        assert GatorSettings(logging={"level": "WARNING"}).get_effective_log_level() == "WARNING"

    def test_user_config_missing_file(self, tmp_path):
        config = UserConfig.read(tmp_path / "missing.json")

        assert config.current_user_name is None
        assert config.path == tmp_path / "missing.json"

    def test_user_config_round_trip(self, tmp_path):
        path = tmp_path / "nested" / "gatorconfig.json"
        config = UserConfig.read(path)

        config.set_user("alice")

        assert json.loads(path.read_text())["current_user_name"] == "alice"
        assert UserConfig.read(path).current_user_name == "alice"

    def test_user_config_ignores_unknown_keys(self, tmp_path):
        path = tmp_path / "gatorconfig.json"
        path.write_text('{"db_url": "postgres://x", "current_user_name": "bob"}')

        assert UserConfig.read(path).current_user_name == "bob"

    def test_user_config_corrupt(self, tmp_path):
        path = tmp_path / "gatorconfig.json"
        path.write_text("{not json")

        with pytest.raises(ConfigurationError) as exc_info:
            UserConfig.read(path)

        assert exc_info.value.error_code == ErrorCode.CONFIG_PARSE_ERROR

    def test_user_config_without_path(self):
        with pytest.raises(ConfigurationError) as exc_info:
            UserConfig().set_user("alice")

        assert exc_info.value.error_code == ErrorCode.CONFIG_MISSING


class TestLogging:
    """Test logging setup and helpers."""

    def test_setup_logger_console_only(self):
        logger = setup_logger("gator.test_console", level="DEBUG", console=True)

        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1

    def test_setup_logger_with_file(self, tmp_path):
        log_file = tmp_path / "logs" / "gator.log"
        logger = setup_logger("gator.test_file", log_file=str(log_file), console=False)

        logger.info("hello")
        for handler in logger.handlers:
            handler.flush()

        record = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert record["message"] == "hello"
        assert record["level"] == "INFO"

    def test_setup_logger_without_handlers(self):
        logger = setup_logger("gator.test_null", console=False)

        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], logging.NullHandler)

    def test_component_logger_context(self):
        adapter = get_logger_for_component("fetcher", feed_url="https://a.example.com/rss")

        assert adapter.logger.name == "gator.fetcher"
        assert adapter.extra == {"component": "fetcher", "feed_url": "https://a.example.com/rss"}

    def test_structured_formatter_includes_extras(self):
        record = logging.LogRecord("gator.x", logging.INFO, __file__, 1, "msg", None, None)
        record.component = "pipeline"

        payload = json.loads(StructuredFormatter().format(record))

        assert payload["extra"]["component"] == "pipeline"
        assert payload["message"] == "msg"

    def test_performance_logger(self, caplog):
        logger = logging.getLogger("gator.test_perf")

        with caplog.at_level(logging.INFO, logger="gator.test_perf"):
            with PerformanceLogger(logger, "unit of work") as perf:
                pass

        assert perf.duration is not None
        assert "Completed unit of work" in caplog.text

    def test_performance_logger_failure(self, caplog):
        logger = logging.getLogger("gator.test_perf_fail")

        with caplog.at_level(logging.INFO, logger="gator.test_perf_fail"):
            with pytest.raises(RuntimeError):
                with PerformanceLogger(logger, "unit of work"):
                    raise RuntimeError("boom")

        assert "Failed unit of work" in caplog.text


class TestExceptions:
    """Test the exception hierarchy."""

    def test_error_string_includes_code(self):
        error = GatorError("boom", error_code=ErrorCode.DATABASE_ERROR)
        assert str(error) == "[D006] boom"

    def test_to_dict(self):
        error = HTTPError("HTTP 503", status=503, feed_url="https://a.example.com/rss")

        data = error.to_dict()

        assert data["error_type"] == "HTTPError"
        assert data["error_code"] == ErrorCode.FEED_HTTP_STATUS.value
        assert data["context"]["status"] == 503
        assert data["context"]["feed_url"] == "https://a.example.com/rss"

    def test_database_error_defaults(self):
        error = DatabaseError("locked")

        assert error.error_code == ErrorCode.DATABASE_CONNECTION
        assert error.recoverable

    def test_user_friendly_message(self):
        assert get_user_friendly_message(
            ValidationError("bad", field_name="url")
        ) == "Invalid url: bad"
        assert "unexpected" in get_user_friendly_message(KeyError("x"))


class TestValidators:
    """Test input validation helpers."""

    @pytest.mark.parametrize(
        "url,expected",
        [
            ("https://example.com/rss", "https://example.com/rss"),
            ("  http://Example.COM/feed.xml  ", "http://example.com/feed.xml"),
            ("HTTPS://example.com/rss#section", "https://example.com/rss"),
            ("https://example.com/rss?format=xml", "https://example.com/rss?format=xml"),
        ],
    )
    def test_valid_urls(self, url, expected):
        assert URLValidator.validate_feed_url(url) == expected

    @pytest.mark.parametrize(
        "url", ["", "   ", None, "example.com/rss", "ftp://example.com/rss", "https://"]
    )
    def test_invalid_urls(self, url):
        with pytest.raises(ValidationError) as exc_info:
            URLValidator.validate_feed_url(url)

        assert exc_info.value.context["field_name"] == "url"

    def test_validate_name(self):
        assert validate_name("  HN ") == "HN"
        with pytest.raises(ValidationError):
            validate_name("")

    @pytest.mark.parametrize(
        "text,seconds",
        [
            ("1s", 1.0),
            ("30s", 30.0),
            ("1m", 60.0),
            ("1h30m", 5400.0),
            ("1.5h", 5400.0),
            ("500ms", 0.5),
            ("+2m", 120.0),
            ("1m0.5s", 60.5),
        ],
    )
    def test_parse_interval(self, text, seconds):
        assert parse_interval(text) == pytest.approx(seconds)

    @pytest.mark.parametrize(
        "text,code",
        [
            ("", ErrorCode.VALIDATION_REQUIRED_FIELD),
            ("10", ErrorCode.VALIDATION_INVALID_FORMAT),
            ("1d", ErrorCode.VALIDATION_INVALID_FORMAT),
            ("m", ErrorCode.VALIDATION_INVALID_FORMAT),
            ("-", ErrorCode.VALIDATION_INVALID_FORMAT),
            ("0s", ErrorCode.VALIDATION_OUT_OF_RANGE),
            ("-1m", ErrorCode.VALIDATION_OUT_OF_RANGE),
        ],
    )
    def test_parse_interval_invalid(self, text, code):
        with pytest.raises(ValidationError) as exc_info:
            parse_interval(text)

        assert exc_info.value.error_code == code
