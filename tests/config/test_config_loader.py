"""
Tests for gl_config: YAML loading, schema validation, the
get_active_config() entry point and the config -> kernel bridges.
"""

import logging
from unittest.mock import MagicMock

import pytest
import yaml
from sqlalchemy.exc import OperationalError

from gl_config import (
    CONFIG_ENV_VAR,
    DATABASE_URL_ENV_VAR,
    LedgerConfig,
    NumberingConfig,
    VarianceConfig,
    get_active_config,
    load_config,
    load_yaml_file,
    parse_config,
)
from gl_config.bridges import build_journal_service, init_engine_from_config, run_unit_of_work
from gl_kernel.db.engine import get_engine, reset_engine


@pytest.fixture(autouse=True)
def _no_config_env(monkeypatch):
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    monkeypatch.delenv(DATABASE_URL_ENV_VAR, raising=False)


def _write(tmp_path, data):
    path = tmp_path / "ledger.yaml"
    path.write_text(yaml.safe_dump(data))
    return path


class TestLoadYaml:
    def test_empty_file_is_empty_mapping(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_yaml_file(path) == {}

    def test_non_mapping_rejected(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ValueError):
            load_yaml_file(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_yaml_file(tmp_path / "absent.yaml")


class TestParseConfig:
    def test_defaults(self):
        config = parse_config({})
        assert config == LedgerConfig()
        assert config.numbering.entry_number_prefix == "JE-"
        assert config.variance.dimension_filters == ("department", "cost_center")

    def test_sections_parsed(self):
        config = parse_config({
            "database": {"url": "sqlite://", "retry_attempts": 5},
            "numbering": {"entry_number_prefix": "GJ-", "number_width": 8},
            "variance": {"dimension_filters": ["department", "dimension_2"]},
            "logging": {"level": "debug"},
        })

        assert config.database.url == "sqlite://"
        assert config.database.retry_attempts == 5
        assert config.numbering.entry_number_prefix == "GJ-"
        assert config.numbering.number_width == 8
        assert config.variance.dimension_filters == ("department", "dimension_2")
        assert config.logging.level_number == logging.DEBUG

    def test_unknown_section(self):
        with pytest.raises(ValueError):
            parse_config({"ledger": {}})

    def test_unknown_key(self):
        with pytest.raises(ValueError):
            parse_config({"numbering": {"prefix": "X"}})

    def test_invalid_dimension_filter(self):
        with pytest.raises(ValueError):
            parse_config({"variance": {"dimension_filters": ["region"]}})

    def test_duplicate_dimension_filter(self):
        with pytest.raises(ValueError):
            VarianceConfig(dimension_filters=("department", "department"))

    def test_number_width_bounds(self):
        with pytest.raises(ValueError):
            NumberingConfig(number_width=0)

    def test_invalid_log_level(self):
        with pytest.raises(ValueError):
            parse_config({"logging": {"level": "LOUD"}})

    def test_yaml_round_trip(self, tmp_path):
        path = _write(tmp_path, {"numbering": {"budget_code_prefix": "B-"}})
        assert load_config(path).numbering.budget_code_prefix == "B-"


class TestGetActiveConfig:
    def test_defaults_without_source(self):
        assert get_active_config() == LedgerConfig()

    def test_explicit_path(self, tmp_path):
        path = _write(tmp_path, {"numbering": {"entry_number_prefix": "X-"}})
        assert get_active_config(path).numbering.entry_number_prefix == "X-"

    def test_env_var_path(self, tmp_path, monkeypatch):
        path = _write(tmp_path, {"numbering": {"entry_number_prefix": "ENV-"}})
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
        assert get_active_config().numbering.entry_number_prefix == "ENV-"

    def test_database_url_override(self, tmp_path, monkeypatch):
        path = _write(tmp_path, {"database": {"url": "postgresql://db/one"}})
        monkeypatch.setenv(DATABASE_URL_ENV_VAR, "postgresql://db/two")
        assert get_active_config(path).database.url == "postgresql://db/two"

    def test_trace_logged(self, captured_logs):
        get_active_config()
        traces = [r for r in captured_logs() if r["message"] == "GL_CONFIG_TRACE"]
        assert traces
        assert traces[-1]["config_source"] == "defaults"


class TestBridges:
    def test_journal_service_uses_numbering(
        self, session, deterministic_clock, test_actor_id,
    ):
        config = parse_config({"numbering": {"entry_number_prefix": "GJ-", "number_width": 4}})
        journal = build_journal_service(session, config, deterministic_clock)

        entry = journal.create_entry(deterministic_clock.today(), test_actor_id)

        assert entry.entry_number == "GJ-0001"

    def test_run_unit_of_work_uses_retry_budget(self):
        config = parse_config({"database": {"retry_attempts": 2}})
        factory = MagicMock()
        work = MagicMock(side_effect=OperationalError("SELECT 1", {}, Exception("database is locked")))

        with pytest.raises(OperationalError):
            run_unit_of_work(work, config, session_factory=factory)

        assert work.call_count == 2
        assert factory.call_count == 2

    def test_init_engine_from_config(self, tmp_path):
        config = parse_config({"database": {"url": f"sqlite:///{tmp_path / 'bridge.db'}"}})

        engine = init_engine_from_config(config)
        try:
            assert engine.dialect.name == "sqlite"
            assert get_engine() is engine
        finally:
            reset_engine()
