"""Invocation configuration loaded from CLI, environment and YAML."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

import httpx
from pydantic import Field, model_validator
from pydantic_settings import (
    BaseSettings,
    CliSuppress,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from taskmon import PROGRAM_NAME
from taskmon.core.formatter import FormatOptions
from taskmon.core.yaml_settings import LayeredYamlSettingsSource

DEFAULT_BASE_URL = "https://hc-ping.com"


class Config(BaseSettings):
    """Options of one task-mon invocation.

    Loaded once, validated as a whole, read-only afterwards.
    """

    uuid: str | None = Field(
        default=None,
        description="Check's UUID to ping",
    )
    slug: str | None = Field(
        default=None,
        description="Check's slug name to ping, requires also specifying --ping-key",
    )
    ping_key: str | None = Field(
        default=None,
        description="Check's project ping key, required when using --slug",
    )
    time: bool = Field(
        default=False,
        description="Ping when the program starts as well as completes",
    )
    head: bool = Field(
        default=False,
        description="POST the first 10k bytes instead of the last",
    )
    ping_only: bool = Field(
        default=False,
        description="Don't POST any output from the command",
    )
    log: bool = Field(
        default=False,
        description=(
            "Log the invocation without signalling success or failure; "
            "does not update the check's status"
        ),
    )
    detailed: bool = Field(
        default=False,
        description=(
            "Include execution details in the information POST-ed "
            "(by default just sends stdout/err)"
        ),
    )
    env: bool = Field(
        default=False,
        description="Also POSTs the process environment; requires --detailed",
    )
    verbose: bool = Field(
        default=False,
        description="Write debugging details to stderr",
    )
    user_agent: str | None = Field(
        default=None,
        description="Customize the user-agent string sent to the Healthchecks.io server",
    )
    base_url: str = Field(
        default=DEFAULT_BASE_URL,
        description="Base URL of the Healthchecks.io server to ping",
    )
    log_file: Path | None = Field(
        default=None,
        description="Also append diagnostics to this file",
    )
    command: CliSuppress[list[str]] = Field(
        default_factory=list,
        description="The command to run (everything after --)",
    )

    model_config = SettingsConfigDict(
        env_prefix="HEALTHCHECKS_",
        cli_prog_name=PROGRAM_NAME,
        cli_kebab_case=True,
        cli_implicit_flags=True,
        cli_use_class_docs_for_groups=True,
        extra='ignore',
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings source priority.

        Priority order (highest to lowest):
        1. init_settings (CLI arguments and direct instantiation)
        2. Environment variables
        3. YAML config files
        4. File secrets
        """
        return (
            init_settings,
            env_settings,
            LayeredYamlSettingsSource(settings_cls),
            file_secret_settings,
        )

    @model_validator(mode="after")
    def _check_options(self) -> "Config":
        """Reject missing identification and conflicting options."""
        if self.uuid and self.slug:
            raise ValueError("--uuid and --slug cannot be used together")
        if not self.uuid and not self.slug:
            raise ValueError("one of --uuid or --slug is required")
        if self.slug and not self.ping_key:
            raise ValueError(
                "--slug requires --ping-key (or HEALTHCHECKS_PING_KEY)"
            )
        if self.time and self.log:
            raise ValueError("--time cannot be used with --log")
        if self.ping_only and (self.detailed or self.env):
            raise ValueError(
                "--ping-only cannot be used with --detailed or --env"
            )
        if self.env and not self.detailed:
            raise ValueError("--env requires --detailed")
        if not self.command:
            raise ValueError("no command given; pass it after --")
        self._check_base_url()
        return self

    def _check_base_url(self):
        """Reject a base URL the ping requests could never be sent to."""
        try:
            url = httpx.URL(self.base_url)
        except httpx.InvalidURL as e:
            raise ValueError(f"--base-url is not a valid URL: {e}") from e
        if url.scheme not in ("http", "https") or not url.host:
            raise ValueError(
                f"--base-url must be an http(s) URL, got {self.base_url!r}"
            )

    @property
    def check_name(self) -> str:
        """Human-readable name of the check being pinged."""
        return self.slug or self.uuid

    def url_prefix(self) -> str:
        """Resolve the ping endpoint of the check.

        Returns:
            <base_url>/<uuid>, or <base_url>/<ping_key>/<slug>
        """
        base_url = self.base_url.rstrip("/")
        if self.uuid:
            return f"{base_url}/{self.uuid}"
        return f"{base_url}/{self.ping_key}/{self.slug}"

    def format_options(
        self, environment: Mapping[str, str] | None = None
    ) -> FormatOptions:
        """Formatting options selected by the flags.

        Args:
            environment: Snapshot to dump when --env is set
        """
        if not self.env or environment is None:
            environment = None
        else:
            environment = dict(environment)
        return FormatOptions(
            detailed=self.detailed,
            environment=environment,
            head=self.head,
            log_only=self.log,
        )


__all__ = ["Config", "DEFAULT_BASE_URL"]
