"""Settings — explicit configuration built once at process start."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from clabot.core.github import parse_repo_url
from clabot.core.logging import LOG_FORMATS, is_valid_level
from clabot.exceptions import ConfigurationMissing

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_LABEL_SIGNED = "cla: yes"
DEFAULT_LABEL_UNSIGNED = "cla: no"
DEFAULT_ROSTER_COLUMN = "email"
DEFAULT_INTERVAL_SECONDS = 3600
DEFAULT_SMTP_PORT = 587


@dataclass(frozen=True)
class Labels:
    """The two label tags provisioned on the repository."""

    signed: str = DEFAULT_LABEL_SIGNED
    unsigned: str = DEFAULT_LABEL_UNSIGNED


@dataclass(frozen=True)
class CommentTemplates:
    """``string.Template`` bodies for the two informational comments."""

    missing: str
    signed: str


@dataclass(frozen=True)
class SmtpSettings:
    host: str = ""
    port: int = DEFAULT_SMTP_PORT
    user: str = ""
    password: str = ""
    from_addr: str = ""
    notify_to: str = ""

    @property
    def enabled(self) -> bool:
        return bool(self.host and self.notify_to)


@dataclass(frozen=True)
class Settings:
    owner: str
    repo: str
    token: str
    roster_source: str
    comments: CommentTemplates
    roster_column: str = DEFAULT_ROSTER_COLUMN
    labels: Labels = Labels()
    api_url: str = DEFAULT_API_URL
    interval_seconds: int = DEFAULT_INTERVAL_SECONDS
    smtp: SmtpSettings = SmtpSettings()
    log_level: str = "INFO"
    log_format: str = "console"

    @property
    def repository(self) -> str:
        return f"{self.owner}/{self.repo}"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from environment variables.

        Every missing required key is collected before raising
        :class:`ConfigurationMissing`, so the operator sees them all at once.
        """
        env = os.environ if environ is None else environ

        def get(key: str, default: str = "") -> str:
            return env.get(key, "").strip() or default

        required = {
            "CLABOT_REPOSITORY": get("CLABOT_REPOSITORY"),
            "CLABOT_GITHUB_TOKEN": get("CLABOT_GITHUB_TOKEN") or get("GITHUB_TOKEN"),
            "CLABOT_ROSTER_SOURCE": get("CLABOT_ROSTER_SOURCE"),
            # Comment bodies keep their surrounding whitespace
            "CLABOT_COMMENT_MISSING": env.get("CLABOT_COMMENT_MISSING", ""),
            "CLABOT_COMMENT_SIGNED": env.get("CLABOT_COMMENT_SIGNED", ""),
        }
        missing = [key for key, value in required.items() if not value.strip()]
        if missing:
            raise ConfigurationMissing(missing)

        try:
            owner, repo = parse_repo_url(required["CLABOT_REPOSITORY"])
        except ValueError as exc:
            raise ConfigurationMissing(["CLABOT_REPOSITORY"], str(exc)) from exc

        labels = Labels(
            signed=get("CLABOT_LABEL_SIGNED", DEFAULT_LABEL_SIGNED),
            unsigned=get("CLABOT_LABEL_UNSIGNED", DEFAULT_LABEL_UNSIGNED),
        )
        if labels.signed == labels.unsigned:
            raise ConfigurationMissing(
                ["CLABOT_LABEL_SIGNED", "CLABOT_LABEL_UNSIGNED"], "labels must differ"
            )

        log_level = get("CLABOT_LOG_LEVEL", "INFO").upper()
        if not is_valid_level(log_level):
            raise ConfigurationMissing(["CLABOT_LOG_LEVEL"], f"unknown level: {log_level!r}")
        log_format = get("CLABOT_LOG_FORMAT", "console").lower()
        if log_format not in LOG_FORMATS:
            raise ConfigurationMissing(
                ["CLABOT_LOG_FORMAT"], f"expected one of: {', '.join(LOG_FORMATS)}"
            )

        smtp_user = get("CLABOT_SMTP_USER")
        smtp = SmtpSettings(
            host=get("CLABOT_SMTP_HOST"),
            port=_env_int(env, "CLABOT_SMTP_PORT", DEFAULT_SMTP_PORT),
            user=smtp_user,
            password=env.get("CLABOT_SMTP_PASSWORD", ""),
            from_addr=get("CLABOT_SMTP_FROM") or smtp_user,
            notify_to=get("CLABOT_NOTIFY_TO"),
        )

        return cls(
            owner=owner,
            repo=repo,
            token=required["CLABOT_GITHUB_TOKEN"],
            roster_source=required["CLABOT_ROSTER_SOURCE"],
            comments=CommentTemplates(
                missing=required["CLABOT_COMMENT_MISSING"],
                signed=required["CLABOT_COMMENT_SIGNED"],
            ),
            roster_column=get("CLABOT_ROSTER_COLUMN", DEFAULT_ROSTER_COLUMN),
            labels=labels,
            api_url=get("CLABOT_GITHUB_API_URL", DEFAULT_API_URL),
            interval_seconds=_env_int(env, "CLABOT_INTERVAL_SECONDS", DEFAULT_INTERVAL_SECONDS),
            smtp=smtp,
            log_level=log_level,
            log_format=log_format,
        )


def _env_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationMissing([key], f"not an integer: {raw!r}") from exc
