from __future__ import annotations

import os
import tomllib
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Mapping, Optional


TOKEN_ENV = "TODOLIST_BOT_TOKEN"
SECRETS_FILE = "secrets.local.toml"


class ConfigError(ValueError):
    pass


@dataclass
class BotConfig:
    token: str
    api_base_url: str = "https://api.telegram.org"
    poll_timeout_s: float = 0.5
    request_timeout_s: float = 10.0
    initial_offset: int = 0
    parse_mode: str = "Markdown"
    logging_level: str = "INFO"
    logging_json: bool = True
    metrics_host: str = "127.0.0.1"
    metrics_port: Optional[int] = None

    def validate(self) -> "BotConfig":
        if not self.token or not self.token.strip():
            raise ConfigError(f"bot token is missing: set {TOKEN_ENV} or [bot].token")
        if self.poll_timeout_s < 0:
            raise ConfigError(f"poll_timeout_s must be >= 0; got {self.poll_timeout_s}")
        if self.request_timeout_s <= 0:
            raise ConfigError(f"request_timeout_s must be > 0; got {self.request_timeout_s}")
        if self.initial_offset < 0:
            raise ConfigError(f"initial_offset must be >= 0; got {self.initial_offset}")
        return self

    def redacted(self) -> dict[str, Any]:
        out = asdict(self)
        tok = self.token or ""
        out["token"] = (tok[:4] + "***") if len(tok) > 8 else "***"
        return out


def _read_toml(path: Path) -> dict:
    with path.open("rb") as f:
        return tomllib.load(f)


def load_config(path: str | Path | None = None, env: Optional[Mapping[str, str]] = None) -> BotConfig:
    """Build and validate a BotConfig.

    Sources, later wins: TOML file (`[bot]`, `[logging]`, `[metrics]`), then the
    `[bot]` table of a sibling secrets.local.toml, then TODOLIST_BOT_TOKEN.
    Raises ConfigError before anything is started if the result is unusable.
    """
    env = os.environ if env is None else env
    data: dict = {}
    if path is not None:
        p = Path(path)
        if not p.exists():
            raise ConfigError(f"config file not found: {p}")
        try:
            data = _read_toml(p)
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"invalid TOML in {p}: {e}") from e
        secrets_path = p.parent / SECRETS_FILE
        if secrets_path.exists():
            try:
                secrets = _read_toml(secrets_path)
            except tomllib.TOMLDecodeError as e:
                raise ConfigError(f"invalid TOML in {secrets_path}: {e}") from e
            # shallow merge only for [bot]
            bot_overlay = secrets.get("bot", {}) or {}
            if bot_overlay:
                merged = (data.get("bot", {}) or {}).copy()
                merged.update(bot_overlay)
                data["bot"] = merged

    bot = data.get("bot", {}) or {}
    log = data.get("logging", {}) or {}
    met = data.get("metrics", {}) or {}

    token = env.get(TOKEN_ENV) or str(bot.get("token", ""))
    port = met.get("port")
    try:
        cfg = BotConfig(
            token=token,
            api_base_url=str(bot.get("api_base_url", "https://api.telegram.org")),
            poll_timeout_s=float(bot.get("poll_timeout_s", 0.5)),
            request_timeout_s=float(bot.get("request_timeout_s", 10.0)),
            initial_offset=int(bot.get("initial_offset", 0)),
            parse_mode=str(bot.get("parse_mode", "Markdown")),
            logging_level=str(log.get("level", "INFO")),
            logging_json=bool(log.get("json", True)),
            metrics_host=str(met.get("host", "127.0.0.1")),
            metrics_port=int(port) if port is not None else None,
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid config value: {e}") from e
    return cfg.validate()
