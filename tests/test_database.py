"""Tests for engine setup and session helpers."""

import pytest
from datetime import datetime
from pathlib import Path
from unittest.mock import patch, MagicMock
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import SQLAlchemyError

from feedback_api.database import (
    POOL_RECYCLE_SECONDS, POOL_SIZE, Base, build_engine, check_database_connection,
    create_tables, drop_tables, engine, get_db, get_db_session, utcnow,
)

PROJECT_ROOT = Path(__file__).resolve().parent.parent


class TestSessions:

    def test_get_db_yields_one_session(self):
        sessions = get_db()
        db = next(sessions)
        assert db is not None

        with pytest.raises(StopIteration):
            next(sessions)

    def test_get_db_session_is_usable(self):
        with get_db_session() as db:
            assert db.is_active

    def test_get_db_session_rolls_back_and_reraises(self):
        with patch("feedback_api.database.SessionLocal") as factory:
            db = factory.return_value
            with pytest.raises(SQLAlchemyError):
                with get_db_session():
                    raise SQLAlchemyError("Test error")

        db.rollback.assert_called_once()
        db.commit.assert_not_called()
        db.close.assert_called_once()

    def test_get_db_session_commits_on_success(self):
        with patch("feedback_api.database.SessionLocal") as factory:
            with get_db_session():
                pass

        factory.return_value.commit.assert_called_once()


class TestSchemaHelpers:

    @patch("feedback_api.database.Base.metadata.create_all")
    def test_create_tables(self, mock_create_all):
        create_tables()
        mock_create_all.assert_called_once_with(bind=engine)

    @patch("feedback_api.database.Base.metadata.drop_all")
    def test_drop_tables(self, mock_drop_all):
        drop_tables()
        mock_drop_all.assert_called_once_with(bind=engine)

    @pytest.mark.parametrize("target", ["create_all", "drop_all"])
    def test_schema_errors_propagate(self, target):
        helper = create_tables if target == "create_all" else drop_tables
        with patch(f"feedback_api.database.Base.metadata.{target}", side_effect=SQLAlchemyError("down")):
            with pytest.raises(SQLAlchemyError):
                helper()

    def test_every_model_is_registered(self):
        assert {
            "users", "refresh_tokens", "login_attempts", "assignments",
            "submissions", "feedback", "ai_action_logs",
        } <= set(Base.metadata.tables)


class TestConnectionCheck:

    @patch("feedback_api.database.engine.connect")
    def test_success(self, mock_connect):
        mock_conn = MagicMock()
        mock_connect.return_value.__enter__.return_value = mock_conn

        assert check_database_connection() is True
        mock_conn.execute.assert_called_once()
        assert str(mock_conn.execute.call_args[0][0]) == "SELECT 1"

    @patch("feedback_api.database.engine.connect")
    def test_failure(self, mock_connect):
        mock_connect.side_effect = SQLAlchemyError("Connection failed")
        assert check_database_connection() is False


class TestEngine:

    def test_pooled_engine(self):
        assert engine.pool.size() == POOL_SIZE
        assert engine.pool._recycle == POOL_RECYCLE_SECONDS

    def test_sqlite_enforces_foreign_keys(self):
        memory_engine = build_engine("sqlite://")
        try:
            with memory_engine.connect() as conn:
                assert conn.execute(text("PRAGMA foreign_keys")).scalar() == 1
        finally:
            memory_engine.dispose()

    def test_utcnow_is_naive(self):
        now = utcnow()
        assert isinstance(now, datetime)
        assert now.tzinfo is None


class TestMigrations:

    def test_upgrade_with_percent_in_url(self, tmp_path, monkeypatch):
        url = f"sqlite:///{tmp_path / 'feedback%20test.db'}"
        monkeypatch.setattr("feedback_api.config.DATABASE_URL", url)
        config = Config()
        config.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))

        command.upgrade(config, "head")

        migrated = create_engine(url)
        try:
            assert {"users", "assignments", "submissions", "feedback"} <= set(inspect(migrated).get_table_names())
        finally:
            migrated.dispose()
