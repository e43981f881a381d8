import pydantic
import pytest

from planner_core.config.settings import Settings


def test_yaml_config_is_loaded_and_env_wins(tmp_path, monkeypatch):
    cfg_file = tmp_path / "planner.yaml"
    cfg_file.write_text("gateway_model: test/model\ngateway_port: 9000\n", encoding="utf-8")
    monkeypatch.setenv("PLANNER_CONFIG_FILE", str(cfg_file))
    monkeypatch.setenv("GATEWAY_PORT", "9100")
    s = Settings()
    assert s.gateway_model == "test/model"
    assert s.gateway_port == 9100


def test_ai_function_url_joins_paths():
    s = Settings(supabase_url="https://proj.supabase.co/", ai_function_path="functions/v1/ai-lesson-planner")
    assert s.ai_function_url == "https://proj.supabase.co/functions/v1/ai-lesson-planner"


def test_short_keys_are_rejected():
    with pytest.raises(pydantic.ValidationError):
        Settings(gateway_api_key="short")


def test_log_level_is_normalised():
    assert Settings(log_level="debug").log_level == "DEBUG"
    with pytest.raises(pydantic.ValidationError):
        Settings(log_level="chatty")
