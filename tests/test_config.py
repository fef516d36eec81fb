import pytest
from pydantic import ValidationError

from task_agent.config import DEFAULT_MODEL, DEFAULT_PROJECTS, AgentConfig, ConfigError, load_config

ENV = {"OPENAI_API_KEY": "sk-test", "LINEAR_API_KEY": "lin-test"}


def test_load_config_defaults():
    config = load_config(ENV)
    assert config.openai_api_key == "sk-test"
    assert config.linear_api_key == "lin-test"
    assert config.model == DEFAULT_MODEL
    assert config.openai_base_url is None
    assert config.default_project_id == DEFAULT_PROJECTS[0].id
    assert [p.name for p in config.projects][:2] == ["overment", "easy_"]
    assert [s.name for s in config.workflow_states] == ["New", "Canceled", "Backlog", "Current", "Done"]


def test_load_config_overrides():
    config = load_config(
        dict(
            ENV,
            TASK_AGENT_MODEL="gpt-4o",
            TASK_AGENT_USER_NAME="Jane",
            LINEAR_DEFAULT_TEAM_ID="team-x",
            LINEAR_DEFAULT_PROJECT_ID="proj-x",
            OPENAI_BASE_URL="https://openrouter.ai/api/v1",
        )
    )
    assert config.model == "gpt-4o"
    assert config.user_name == "Jane"
    assert config.schema_defaults()["team_id"] == "team-x"
    assert config.schema_defaults()["project_id"] == "proj-x"
    assert config.openai_base_url == "https://openrouter.ai/api/v1"


@pytest.mark.parametrize("missing", ["OPENAI_API_KEY", "LINEAR_API_KEY"])
def test_missing_keys_raise(missing):
    env = dict(ENV)
    env[missing] = " "
    with pytest.raises(ConfigError, match=missing):
        load_config(env)


def test_config_is_immutable():
    config = AgentConfig()
    with pytest.raises(ValidationError):
        config.model = "other"


def test_background_falls_back_to_persona():
    assert AgentConfig().background == "You are Alice, a helpful assistant."
    assert AgentConfig(user_context="Adam runs a YouTube channel.").background == "Adam runs a YouTube channel."
