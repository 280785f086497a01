"""
Configuration loading.

Settings come from a YAML file with environment variable overrides and are
loaded once into a ReportConfig value that callers pass around explicitly.

Example settings file::

    github:
      api_url: https://api.github.com
    report:
      title: NEAR Merged Pull Requests
      output_dir: reports
    repositories:
      - owner: near
        repo: nearcore
    mail:
      user_email: reports@example.com
      recipients: [team@example.com]
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

import yaml

from .fetcher import DEFAULT_API_URL
from .models import RepoTarget

logger = logging.getLogger("dev-report.config")

DEFAULT_SETTINGS_PATH = "settings.yaml"
DEFAULT_TOKEN_URL = "https://oauth2.googleapis.com/token"


class ConfigError(RuntimeError):
    """Raised when the settings are missing or malformed."""


@dataclass
class MailSettings:
    """OAuth2 SMTP credentials and recipients."""
    user_email: str
    client_id: str
    client_secret: str
    refresh_token: str
    recipients: List[str] = field(default_factory=list)
    access_token: Optional[str] = None
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 465
    token_url: str = DEFAULT_TOKEN_URL


@dataclass
class ReportConfig:
    """Everything one report run needs."""
    token: Optional[str]
    repositories: List[RepoTarget]
    api_url: str = DEFAULT_API_URL
    title: Optional[str] = None
    output_dir: str = "."
    mail: Optional[MailSettings] = None


def load_settings(path: str) -> Tuple[dict, str]:
    """
    Load the YAML settings mapping.

    A missing file yields an empty mapping so environment-only setups work.
    """
    resolved = os.path.abspath(path)
    if not os.path.isfile(resolved):
        logger.debug("Settings file %s not found, using environment only", resolved)
        return {}, resolved
    with open(resolved, "r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle.read())
    if data is None:
        return {}, resolved
    if not isinstance(data, dict):
        raise ConfigError(f"Settings file must contain a mapping: {resolved}")
    return data, resolved


def parse_repositories(entries) -> List[RepoTarget]:
    """
    Parse repository entries.

    Accepts ``{owner, repo}`` mappings or ``"owner/repo"`` strings; order is kept.
    """
    if not isinstance(entries, list):
        raise ConfigError("'repositories' must be a list")
    targets: List[RepoTarget] = []
    for entry in entries:
        if isinstance(entry, str) and "/" in entry:
            owner, repo = entry.split("/", 1)
        elif isinstance(entry, dict) and entry.get("owner") and entry.get("repo"):
            owner, repo = entry["owner"], entry["repo"]
        else:
            raise ConfigError(f"Invalid repository entry: {entry!r}")
        targets.append(RepoTarget(owner=str(owner).strip(), repo=str(repo).strip()))
    return targets


def _section(settings: dict, key: str, resolved: str) -> dict:
    """Return a top-level section, which must be a mapping when present."""
    value = settings.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{key}' must be a mapping in {resolved}")
    return value


def _mail_settings(section: Mapping, env: Mapping[str, str]) -> Optional[MailSettings]:
    values: Dict[str, object] = dict(section or {})
    for key in ("user_email", "client_id", "client_secret", "refresh_token", "access_token", "smtp_host"):
        env_value = env.get(f"MAIL_{key.upper()}")
        if env_value:
            values[key] = env_value
    if env.get("MAIL_SMTP_PORT"):
        values["smtp_port"] = env["MAIL_SMTP_PORT"]
    if env.get("MAIL_RECIPIENTS"):
        values["recipients"] = [r.strip() for r in env["MAIL_RECIPIENTS"].split(",") if r.strip()]

    required = ("user_email", "client_id", "client_secret", "refresh_token")
    if not any(values.get(k) for k in required):
        return None
    missing = [k for k in required if not values.get(k)]
    if missing:
        raise ConfigError(f"Mail settings incomplete, missing: {', '.join(missing)}")

    recipients = values.get("recipients") or [values["user_email"]]
    if isinstance(recipients, str):
        recipients = [recipients]
    return MailSettings(
        user_email=str(values["user_email"]),
        client_id=str(values["client_id"]),
        client_secret=str(values["client_secret"]),
        refresh_token=str(values["refresh_token"]),
        recipients=list(recipients),
        access_token=values.get("access_token") or None,
        smtp_host=str(values.get("smtp_host") or "smtp.gmail.com"),
        smtp_port=int(values.get("smtp_port") or 465),
        token_url=str(values.get("token_url") or DEFAULT_TOKEN_URL),
    )


def load_config(path: str = DEFAULT_SETTINGS_PATH, env: Optional[Mapping[str, str]] = None) -> ReportConfig:
    """
    Build the ReportConfig from a settings file and the environment.

    Environment variables (GITHUB_TOKEN, GITHUB_API_URL, MAIL_*) take
    precedence over file values.

    Raises:
        ConfigError: If no repositories are configured or a section is malformed
    """
    env = os.environ if env is None else env
    settings, resolved = load_settings(path)

    github = _section(settings, "github", resolved)
    report = _section(settings, "report", resolved)

    repositories = parse_repositories(settings.get("repositories") or [])
    if not repositories:
        raise ConfigError(f"No repositories configured in {resolved}")

    token = env.get("GITHUB_TOKEN") or github.get("token")
    if not token:
        logger.warning("No GitHub token configured; requests are unauthenticated and rate limited")

    config = ReportConfig(
        token=token,
        repositories=repositories,
        api_url=env.get("GITHUB_API_URL") or github.get("api_url") or DEFAULT_API_URL,
        title=report.get("title"),
        output_dir=str(report.get("output_dir") or "."),
        mail=_mail_settings(_section(settings, "mail", resolved), env),
    )
    logger.debug("Loaded %d repositories from %s", len(repositories), resolved)
    return config
