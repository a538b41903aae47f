"""Tests for the Alembic migration helpers."""

from unittest.mock import patch

import pytest

from voice_retention.core.migrations import (
    get_alembic_config,
    get_head_revision,
    run_migrations,
)


class TestMigrations:
    """Tests for migration configuration and revision chain."""

    def test_config_points_at_migrations_directory(self):
        config = get_alembic_config()

        assert config.get_main_option("script_location").endswith("migrations")

    def test_head_is_audit_log_revision(self):
        assert get_head_revision() == "002_voice_consent_audit_logs"

    def test_run_migrations_upgrades_to_head(self):
        with patch("voice_retention.core.migrations.command.upgrade") as mock_upgrade:
            run_migrations()

        assert mock_upgrade.call_args[0][1] == "head"

    def test_run_migrations_reraises(self):
        with patch(
            "voice_retention.core.migrations.command.upgrade",
            side_effect=RuntimeError("cannot connect"),
        ):
            with pytest.raises(RuntimeError):
                run_migrations()
