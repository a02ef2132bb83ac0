"""Configuration utilities for the Discord Roster Importer.

This module loads application configuration from environment variables
and an optional ``.env`` file. It centralizes settings for the MySQL
roster store, Discord API access and roster import limits.

Examples
--------
>>> from discord_roster_importer.config import load_config
>>> cfg = load_config()
>>> cfg.importer.max_attachment_bytes
5242880
"""

import logging
import os
from dataclasses import dataclass
from dotenv import load_dotenv


DEFAULT_MAX_ATTACHMENT_BYTES = 5 * 1024 * 1024


@dataclass
class DBConfig:
    """Database configuration.

    Attributes
    ----------
    host : str
        MySQL server hostname or IP address.
    port : int
        MySQL server port, typically ``3306``.
    user : str
        Username for authentication.
    password : str
        Password for authentication.
    database : str
        Default schema/database name to use.
    """
    host: str
    port: int
    user: str
    password: str
    database: str


@dataclass
class DiscordConfig:
    """Discord API configuration.

    Attributes
    ----------
    token : str | None
        Bot token used to authenticate with Discord's API.
    allowed_channel_ids : list of int
        Guild channels where roster uploads are accepted besides DMs.
    """
    token: str | None
    allowed_channel_ids: list[int]


@dataclass
class ImportConfig:
    """Roster import behaviour.

    Attributes
    ----------
    max_attachment_bytes : int
        Attachments larger than this are not downloaded.
    store_rosters : bool
        Whether the bot writes parsed rosters to MySQL after previewing.
    """
    max_attachment_bytes: int
    store_rosters: bool


@dataclass
class AppConfig:
    db: DBConfig
    discord: DiscordConfig
    importer: ImportConfig
    log_level: int


def _truthy(value: str | None) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes"}


def _parse_id_list(raw: str) -> list[int]:
    ids = []
    for part in raw.split(","):
        part = part.strip()
        if part.isdigit():
            ids.append(int(part))
    return ids


def _parse_log_level(raw: str | None) -> int:
    level = logging.getLevelName((raw or "INFO").strip().upper())
    return level if isinstance(level, int) else logging.INFO


def load_config() -> AppConfig:
    """Load configuration from environment variables and ``.env``.

    Returns
    -------
    AppConfig
        Fully populated configuration object.

    Notes
    -----
    Environment variables take precedence. If a ``.env`` file is present
    in the working directory, it will be loaded prior to reading the
    variables.
    """
    load_dotenv()

    db_password = os.getenv("MYSQL_PASSWORD") or os.getenv("MYSQL_ROOT_PASSWORD", "")
    db = DBConfig(
        host=os.getenv("MYSQL_HOST", "127.0.0.1"),
        port=int(os.getenv("MYSQL_PORT", "3306")),
        user=os.getenv("MYSQL_USER", "root"),
        password=db_password,
        database=os.getenv("MYSQL_DATABASE", "discord_rosters"),
    )

    discord = DiscordConfig(
        token=os.getenv("DISCORD_TOKEN"),
        allowed_channel_ids=_parse_id_list(os.getenv("DISCORD_ALLOWED_CHANNEL_IDS", "")),
    )

    max_bytes_env = os.getenv("IMPORT_MAX_BYTES", "").strip()
    importer = ImportConfig(
        max_attachment_bytes=int(max_bytes_env) if max_bytes_env.isdigit() else DEFAULT_MAX_ATTACHMENT_BYTES,
        store_rosters=_truthy(os.getenv("IMPORT_STORE_ROSTERS")),
    )

    return AppConfig(
        db=db,
        discord=discord,
        importer=importer,
        log_level=_parse_log_level(os.getenv("LOG_LEVEL")),
    )
