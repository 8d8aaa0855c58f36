"""Unit tests for content_ranking_service.models.database."""
import importlib
import sys

import pytest
from unittest.mock import patch
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

import content_ranking_service.models.database as db_module

MODULE_NAME = 'content_ranking_service.models.database'


class TestDatabaseModule:
    """Tests for database module."""

    def test_database_url_is_set(self, monkeypatch):
        """Test that DATABASE_URL is read from config."""
        # Arrange
        monkeypatch.setenv('DATABASE_URL', 'sqlite:///:memory:')

        # Act
        importlib.reload(db_module)

        # Assert
        assert db_module.DATABASE_URL == 'sqlite:///:memory:'
        assert isinstance(db_module.engine, Engine)

    def test_database_url_validation_raises_when_none(self):
        """Test that the module raises ValueError when no URL is configured."""
        # Arrange
        original_module = sys.modules.get(MODULE_NAME)

        try:
            sys.modules.pop(MODULE_NAME, None)

            with patch('content_ranking_service.config.get_database_url', return_value=None):
                # Act & Assert
                with pytest.raises(ValueError, match="DATABASE_URL is not configured"):
                    importlib.import_module(MODULE_NAME)
        finally:
            # Restore the original module to avoid breaking subsequent tests
            if original_module is not None:
                sys.modules[MODULE_NAME] = original_module

    def test_get_db_yields_session(self, monkeypatch):
        """Test that get_db yields a session and closes it afterwards."""
        # Arrange
        monkeypatch.setenv('DATABASE_URL', 'sqlite:///:memory:')
        importlib.reload(db_module)

        # Act
        db_generator = db_module.get_db()
        db = next(db_generator)

        # Assert
        assert isinstance(db, Session)
        with pytest.raises(StopIteration):
            next(db_generator)

    def test_engine_configuration(self, monkeypatch):
        """Test that engine has correct configuration."""
        # Arrange
        monkeypatch.setenv('DATABASE_URL', 'sqlite:///:memory:')
        importlib.reload(db_module)

        # Assert
        assert db_module.engine.pool._pre_ping
        assert db_module.engine.pool._recycle == 3600
        assert not db_module.engine.echo
