"""Plugin configuration.

Settings come from three places, later ones winning:
- defaults on `PluginSettings`
- an optional YAML file (see configs/localllm.yaml)
- LOCALLLM_* environment variables

The host hands its option panel over as a flat key/value mapping; use
`PluginSettings.from_options` for that. A settings object is frozen; on every
host update a new one is built and passed to the consumer.
"""
from __future__ import annotations
import os
from typing import Any, Mapping

import yaml
from pydantic import AliasChoices, BaseModel, ConfigDict, Field

DEFAULT_ENDPOINT = "http://localhost:11434/api/generate"
DEFAULT_MODEL = "llama3.1"
DEFAULT_CLIPBOARD_TRIGGER = "<clip>"
DEFAULT_SEND_TRIGGER = "~"

ENV_OVERRIDES = {
    "LOCALLLM_ENDPOINT": "endpoint",
    "LOCALLLM_MODEL": "model",
    "LOCALLLM_CLIPBOARD_TRIGGER": "clipboard_trigger_keyword",
    "LOCALLLM_SEND_TRIGGER": "send_trigger_keyword",
    "LOCALLLM_TIMEOUT": "timeout",
}
NULLABLE_OPTIONS = {"timeout"}


class PluginSettings(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    endpoint: str = Field(
        DEFAULT_ENDPOINT,
        validation_alias=AliasChoices("endpoint", "LLMEndpoint"),
    )
    model: str = Field(
        DEFAULT_MODEL,
        validation_alias=AliasChoices("model", "LLMModel"),
    )
    clipboard_trigger_keyword: str = Field(
        DEFAULT_CLIPBOARD_TRIGGER,
        min_length=1,
        validation_alias=AliasChoices(
            "clipboard_trigger_keyword", "clipboardTriggerKeyword", "ClipboardTriggerKeyword"
        ),
    )
    send_trigger_keyword: str = Field(
        DEFAULT_SEND_TRIGGER,
        min_length=1,
        validation_alias=AliasChoices(
            "send_trigger_keyword", "sendTriggerKeyword", "SendTriggerKeyword"
        ),
    )
    # None disables the read timeout (wait for the model indefinitely)
    timeout: float | None = Field(120.0, gt=0)
    connect_timeout: float = Field(5.0, gt=0)

    @classmethod
    def from_options(cls, options: Mapping[str, Any] | None) -> "PluginSettings":
        """
        Build settings from a host option mapping.

        Args:
            options: Key/value pairs as supplied by the host. Missing, None or
                empty values fall back to the defaults, except an explicit
                `timeout: None`, which disables the read timeout.
        """
        cleaned = {
            k: v
            for k, v in (options or {}).items()
            if v != "" and (v is not None or k in NULLABLE_OPTIONS)
        }
        return cls.model_validate(cleaned)

    def updated(self, **changes: Any) -> "PluginSettings":
        """Return a new settings object with `changes` applied and validated."""
        data = self.model_dump()
        data.update(changes)
        return type(self).model_validate(data)


def load_cfg(path: str) -> dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a mapping, got {type(data).__name__}")
    return data


def load_settings(path: str | None = None, environ: Mapping[str, str] | None = None) -> PluginSettings:
    """
    Load plugin settings.

    Args:
        path: Optional YAML config path.
        environ: Environment to read LOCALLLM_* overrides from (defaults to os.environ).
    """
    data: dict[str, Any] = load_cfg(path) if path else {}
    env = os.environ if environ is None else environ
    for var, field in ENV_OVERRIDES.items():
        value = env.get(var)
        if value:
            data[field] = value
    return PluginSettings.from_options(data)
