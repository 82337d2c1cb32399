"""
Tests for Env loading and duration parsing.
"""

import pytest

from cubewarden.env import Env, TimeParser, load_env


class TestTimeParser:
    """Test duration strings."""

    @pytest.mark.parametrize(
        "duration,expected",
        [
            ("10s", 10.0),
            ("0.5s", 0.5),
            ("1m", 60.0),
            ("1m30s", 90.0),
            ("2h", 7200.0),
            ("15", 15.0),
        ],
    )
    def test_parses_durations(self, duration: str, expected: float):
        """TimeParser should convert duration strings to seconds."""
        assert TimeParser(duration).time == expected

    def test_unset_duration(self):
        """A parser without input has no time."""
        assert TimeParser().time is None


class TestEnvDefaults:
    """Test default Env values and derived configs."""

    def test_scout_config_defaults(self):
        """Scout timings default to ten seconds."""
        config = Env().get_scout_config()

        assert config == {
            "wait_timeout": 10.0,
            "initial_delay": 10.0,
            "status_retries": 5,
        }

    def test_sync_config_defaults(self):
        """Sync config carries workers, backoff, staleness mode and gc period."""
        config = Env().get_sync_config()

        assert config["workers"] == 1
        assert config["retry_base_delay"] == pytest.approx(0.005)
        assert config["retry_max_delay"] == 1000.0
        assert config["staleness_check"] == "pivot-vs-local"
        assert config["gc_interval"] == 60.0

    def test_reporter_config_defaults(self):
        """Reporter config names the local cluster and the pivot role."""
        config = Env().get_reporter_config()

        assert config["cluster"] == "pivot-cluster"
        assert config["is_member_cluster"] is False
        assert config["period"] == 3.0
        assert config["register_interval"] == 3.0
        assert config["register_timeout"] == 15.0


class TestLoadEnv:
    """Test merging process environment, env files and overrides."""

    def test_reads_process_environment(self, monkeypatch, tmp_path):
        """Variables from the process environment are parsed by type."""
        monkeypatch.setenv("WARDEN_CLUSTER_NAME", "member-1")
        monkeypatch.setenv("WARDEN_IS_MEMBER_CLUSTER", "true")
        monkeypatch.setenv("SCOUT_STATUS_RETRIES", "7")

        env = load_env(env_file=str(tmp_path / "missing.env"))

        assert env.WARDEN_CLUSTER_NAME == "member-1"
        assert env.WARDEN_IS_MEMBER_CLUSTER is True
        assert env.SCOUT_STATUS_RETRIES == 7

    def test_env_file_overrides_process_environment(self, monkeypatch, tmp_path):
        """Values from the env file take precedence over the process environment."""
        monkeypatch.setenv("SCOUT_WAIT_TIMEOUT", "20s")

        env_file = tmp_path / ".env"
        env_file.write_text("SCOUT_WAIT_TIMEOUT=5s\nSYNC_STALENESS_CHECK=disabled\n")

        env = load_env(env_file=str(env_file))

        assert env.get_scout_config()["wait_timeout"] == 5.0
        assert env.SYNC_STALENESS_CHECK == "disabled"

    def test_override_model_wins(self, monkeypatch, tmp_path):
        """Explicitly set override fields replace loaded values."""
        monkeypatch.setenv("WARDEN_CLUSTER_NAME", "member-1")

        env = load_env(
            env_file=str(tmp_path / "missing.env"),
            override=Env(WARDEN_CLUSTER_NAME="member-2"),
        )

        assert env.WARDEN_CLUSTER_NAME == "member-2"
