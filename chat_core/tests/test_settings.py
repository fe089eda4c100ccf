import pytest

from chat_core.config.settings import load_settings


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.chdir(tmp_path)
    for name in ("PROVIDER", "KEY", "MODEL", "SYSTEM_PROMPT", "DEBUG", "CONFIG_FILE", "BASE_URL"):
        monkeypatch.delenv(f"DOCCHAT_{name}", raising=False)


def test_defaults_without_config():
    s = load_settings()
    assert s.provider == ""
    assert s.key is None
    assert s.system_prompt == []
    assert s.debug is False


def test_load_from_yaml(tmp_path):
    cfg = tmp_path / "conf.yaml"
    cfg.write_text(
        "provider: OpenAI\n"
        "key: sk-123\n"
        "model: gpt-4o\n"
        "system_prompt:\n"
        "  - line one\n"
        "  - line two\n"
        "debug: true\n",
        encoding="utf-8",
    )
    s = load_settings(str(cfg))
    assert s.provider == "openai"
    assert s.key == "sk-123"
    assert s.model == "gpt-4o"
    assert s.system_prompt_text == "line one\nline two"
    assert s.debug is True


def test_env_overrides_yaml(tmp_path, monkeypatch):
    cfg = tmp_path / "conf.yaml"
    cfg.write_text("provider: google\nmodel: from-yaml\n", encoding="utf-8")
    monkeypatch.setenv("DOCCHAT_CONFIG_FILE", str(cfg))
    monkeypatch.setenv("DOCCHAT_MODEL", "from-env")
    s = load_settings()
    assert s.provider == "google"
    assert s.model == "from-env"


def test_default_config_location(tmp_path):
    (tmp_path / ".docchat.yaml").write_text("provider: kimi\nsystem_prompt: |\n  a\n  b\n", encoding="utf-8")
    s = load_settings()
    assert s.provider == "kimi"
    assert s.system_prompt == ["a", "b"]
