from pathlib import Path

import pytest

from todobot.config import TOKEN_ENV, BotConfig, ConfigError, load_config


def test_load_config_defaults_from_env_only():
    cfg = load_config(env={TOKEN_ENV: "123:abc"})
    assert cfg.token == "123:abc"
    assert cfg.poll_timeout_s == 0.5
    assert cfg.parse_mode == "Markdown"
    assert cfg.initial_offset == 0
    assert cfg.metrics_port is None


def test_missing_token_fails_fast():
    with pytest.raises(ConfigError, match=TOKEN_ENV):
        load_config(env={})


def test_load_config_from_toml(tmp_path: Path):
    p = tmp_path / "todobot.toml"
    p.write_text(
        """
        [bot]
        token = "from-file"
        poll_timeout_s = 20
        initial_offset = 100

        [logging]
        level = "DEBUG"
        json = false

        [metrics]
        port = 9108
        """
    )
    cfg = load_config(p, env={})
    assert cfg.token == "from-file"
    assert cfg.poll_timeout_s == 20.0
    assert cfg.initial_offset == 100
    assert cfg.logging_level == "DEBUG" and cfg.logging_json is False
    assert cfg.metrics_port == 9108


def test_secrets_overlay_and_env_precedence(tmp_path: Path):
    p = tmp_path / "todobot.toml"
    p.write_text('[bot]\ntoken = "from-file"\nparse_mode = "HTML"\n')
    (tmp_path / "secrets.local.toml").write_text('[bot]\ntoken = "from-secrets"\n')
    assert load_config(p, env={}).token == "from-secrets"
    assert load_config(p, env={}).parse_mode == "HTML"
    assert load_config(p, env={TOKEN_ENV: "from-env"}).token == "from-env"


@pytest.mark.parametrize(
    "body",
    [
        '[bot]\ntoken = "x"\npoll_timeout_s = -1\n',
        '[bot]\ntoken = "x"\nrequest_timeout_s = 0\n',
        '[bot]\ntoken = "x"\ninitial_offset = -5\n',
        '[bot]\ntoken = "x"\ninitial_offset = "abc"\n',
        "[bot\n",
    ],
)
def test_invalid_values_raise_config_error(tmp_path: Path, body: str):
    p = tmp_path / "bad.toml"
    p.write_text(body)
    with pytest.raises(ConfigError):
        load_config(p, env={})


def test_missing_file_raises(tmp_path: Path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path / "nope.toml", env={TOKEN_ENV: "x"})


def test_redacted_masks_token():
    cfg = BotConfig(token="123456789:SECRET-PART")
    red = cfg.redacted()
    assert "SECRET" not in red["token"]
    assert red["token"].startswith("1234")
    assert BotConfig(token="short").redacted()["token"] == "***"
