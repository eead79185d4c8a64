"""
Unit tests for settings loading.
"""

import pytest

from config import Settings, load_config, get_default_config_path


class TestSettings:

    def test_defaults(self):
        settings = Settings()

        assert settings.vector_dimension == 1536
        assert settings.engine == "sqlite"
        assert settings.sqlite.database == ":memory:"
        assert settings.postgres.dsn is None

    def test_from_dict_nested(self):
        settings = Settings.from_dict({
            "vector_dimension": 384,
            "engine": "postgres",
            "postgres": {"dsn": "postgresql://localhost/memories"},
        })

        assert settings.vector_dimension == 384
        assert settings.postgres.dsn == "postgresql://localhost/memories"
        assert settings.postgres.command_timeout == 60
        assert settings.sqlite.database == ":memory:"

    def test_to_dict(self):
        data = Settings().to_dict()

        assert data["sqlite"]["timeout"] == 5.0
        assert Settings.from_dict(data) == Settings()

    def test_apply_env(self):
        settings = Settings().apply_env({
            "MEMORYSTORE_VECTOR_DIMENSION": "8",
            "MEMORYSTORE_ENGINE": "postgres",
            "MEMORYSTORE_POSTGRES_DSN": "postgresql://db/x",
            "MEMORYSTORE_SQLITE_DATABASE": "/tmp/m.db",
            "MEMORYSTORE_LOG_LEVEL": "DEBUG",
        })

        assert settings.vector_dimension == 8
        assert settings.engine == "postgres"
        assert settings.postgres.dsn == "postgresql://db/x"
        assert settings.sqlite.database == "/tmp/m.db"
        assert settings.log_level == "DEBUG"

    def test_apply_env_ignores_unrelated(self):
        settings = Settings().apply_env({"HOME": "/root"})
        assert settings == Settings()


class TestLoadConfig:

    @pytest.fixture(autouse=True)
    def clean_env(self, monkeypatch):
        for name in [
            "MEMORYSTORE_CONFIG",
            "MEMORYSTORE_VECTOR_DIMENSION",
            "MEMORYSTORE_ENGINE",
            "MEMORYSTORE_SQLITE_DATABASE",
            "MEMORYSTORE_POSTGRES_DSN",
            "MEMORYSTORE_LOG_LEVEL",
        ]:
            monkeypatch.delenv(name, raising=False)

    def test_load_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "vector_dimension: 16\n"
            "sqlite:\n"
            "  database: memories.db\n"
        )

        settings = load_config(str(path))

        assert settings.vector_dimension == 16
        assert settings.sqlite.database == "memories.db"
        assert settings.sqlite.timeout == 5.0

    def test_missing_file_gives_defaults(self, tmp_path):
        settings = load_config(str(tmp_path / "absent.yaml"))
        assert settings == Settings()

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")

        assert load_config(str(path)) == Settings()

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text("vector_dimension: 16\n")
        monkeypatch.setenv("MEMORYSTORE_VECTOR_DIMENSION", "32")

        assert load_config(str(path)).vector_dimension == 32
        assert load_config(str(path), use_env=False).vector_dimension == 16

    def test_config_path_from_env(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.yaml"
        path.write_text("engine: sqlite\nvector_dimension: 4\n")
        monkeypatch.setenv("MEMORYSTORE_CONFIG", str(path))

        assert get_default_config_path() == path
        assert load_config().vector_dimension == 4

    def test_packaged_default(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)

        path = get_default_config_path()

        assert path.name == "default_config.yaml"
        assert load_config().vector_dimension == 1536
