from pathlib import Path

from tcpwait.config import load_config, load_environment


def _clear_env(monkeypatch):
    for key in ["LOG_DIR", "LOG_LEVEL", "APP_NAME"]:
        monkeypatch.delenv(key, raising=False)


def test_load_config_defaults_without_env_file(tmp_path, monkeypatch):
    _clear_env(monkeypatch)

    config = load_config(tmp_path / "missing.env")

    assert config.log_directory is None
    assert config.log_level == "INFO"
    assert config.app_name == "tcpwait"


def test_load_config_reads_env_file(tmp_path, monkeypatch):
    _clear_env(monkeypatch)
    monkeypatch.chdir(tmp_path)
    env_file = tmp_path / "test.env"
    env_file.write_text(
        "\n".join(
            [
                "# comment",
                "LOG_DIR=logs/testing",
                "LOG_LEVEL=debug",
                "APP_NAME='deploy-gate'",
            ]
        ),
        encoding="utf-8",
    )

    config = load_config(env_file)

    assert config.log_directory == Path.cwd() / "logs/testing"
    assert config.log_level == "DEBUG"
    assert config.app_name == "deploy-gate"


def test_load_config_prefers_environment_variables(tmp_path, monkeypatch):
    _clear_env(monkeypatch)
    env_file = tmp_path / "test.env"
    env_file.write_text(
        "\n".join([f"LOG_DIR={tmp_path / 'from_env_file'}", "LOG_LEVEL=info"]),
        encoding="utf-8",
    )

    env_log_dir = tmp_path / "from_env"
    monkeypatch.setenv("LOG_DIR", str(env_log_dir))
    monkeypatch.setenv("LOG_LEVEL", "warning")
    monkeypatch.setenv("APP_NAME", "runtime-app")

    config = load_config(env_file)

    assert config.log_directory == env_log_dir
    assert config.log_level == "WARNING"
    assert config.app_name == "runtime-app"


def test_load_environment_uses_working_directory_dotenv(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("TCPWAIT_SAMPLE", raising=False)
    Path(".env").write_text("TCPWAIT_SAMPLE=from-dotenv\n", encoding="utf-8")

    assert load_environment()["TCPWAIT_SAMPLE"] == "from-dotenv"
