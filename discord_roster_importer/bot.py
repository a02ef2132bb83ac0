from __future__ import annotations

"""Discord bot: upload roster exports to preview and import them.

Run this module to start a Discord bot that listens for direct messages
(DMs) and optionally specific allowed channels. Staff attach SIS class
lists, LMS group exports or plain CSV/XLSX rosters; the bot parses each
supported attachment and replies with a preview of the records found.

Usage
-----
- Ensure environment variables are set (can be via .env):
  - ``DISCORD_TOKEN``: bot token
  - Optional ``DISCORD_ALLOWED_CHANNEL_IDS``: comma-separated channel IDs
  - Optional ``IMPORT_STORE_ROSTERS=true`` plus ``MYSQL_*`` to persist rosters

- Start the bot:
  ``python -m discord_roster_importer.bot``
"""

import asyncio
import logging
import sys

import discord

from .classifier import classify_filename
from .config import AppConfig, load_config
from .db import get_conn, init_schema
from .ingest import course_key_for, store_parsed_file, summarize
from .logging_config import setup_logging
from .models import LmsGroups
from .parser import ParsedFile, UnsupportedFileType, parse_file

logger = logging.getLogger(__name__)

HELP_TEXT = (
    "I couldn't find a roster file in your message. Supported uploads: "
    "`YYYYSS_CRN_classlist.xlsx` (SIS class list), "
    "`<timestamp>_<term>_<DEPT>_<num>_<sec>_groupmembers.csv` / `_groups.csv` (LMS exports), "
    "or any `.csv` / `.xlsx` roster."
)


def _should_handle_message(msg: discord.Message, allowed_channel_ids: list[int]) -> bool:
    # Ignore bot/self messages
    if msg.author.bot:
        return False
    # Always handle DMs
    if isinstance(msg.channel, (discord.DMChannel, discord.PartialMessageable)):
        return True
    # Handle in allowed text channels/threads when configured
    if allowed_channel_ids and msg.channel.id in allowed_channel_ids:  # type: ignore[attr-defined]
        return True
    return False


def _roster_attachments(msg: discord.Message) -> list:
    """Attachments whose filename classifies as a supported roster type."""
    return [att for att in msg.attachments if classify_filename(att.filename).supported]


def _store(cfg: AppConfig, parsed: ParsedFile) -> str:
    key = course_key_for(parsed)
    if key is None:
        return "Not stored: course/term unknown for this file."
    conn = get_conn(cfg.db)
    try:
        init_schema(conn)
        result = store_parsed_file(conn, parsed, key)
    finally:
        conn.close()
    if isinstance(parsed.data, LmsGroups):
        return f"Stored {result.groups} group(s) for {key.course_code}."
    return f"Stored {result.inserted} new entries ({result.duplicates} already present) for {key.course_code}."


async def _process_attachment(att, cfg: AppConfig) -> str:
    """Download, parse and optionally store one attachment; return reply text."""
    name = att.filename or ""
    if att.size and att.size > cfg.importer.max_attachment_bytes:
        return f"**{name}**: skipped, file is larger than {cfg.importer.max_attachment_bytes} bytes."
    try:
        data = await att.read()
    except discord.HTTPException as e:
        logger.warning("Failed to download %s: %s", name, e)
        return f"**{name}**: could not download the file."

    try:
        parsed = parse_file(name, data)
    except UnsupportedFileType as e:
        return f"**{name}**: {e}"

    reply = f"**{name}**\n{summarize(parsed)}"
    if cfg.importer.store_rosters:
        try:
            reply += "\n" + await asyncio.to_thread(_store, cfg, parsed)
        except Exception as e:
            logger.exception("Storing %s failed", name)
            reply += f"\nThere was an error storing this roster: {e}"
    return reply


async def _run_bot() -> None:
    cfg = load_config()
    setup_logging(cfg.log_level)
    if not cfg.discord.token:
        print("Missing DISCORD_TOKEN in environment/.env", file=sys.stderr)
        sys.exit(1)

    intents = discord.Intents.default()
    intents.message_content = True
    client = discord.Client(intents=intents)

    @client.event
    async def on_ready():
        user = client.user
        logger.info("Logged in as %s (id=%s)", user, user.id if user else "n/a")

    @client.event
    async def on_message(message: discord.Message):
        if not _should_handle_message(message, cfg.discord.allowed_channel_ids):
            return

        attachments = _roster_attachments(message)
        if not attachments:
            if message.attachments:
                await message.reply(HELP_TEXT)
            return

        replies = [await _process_attachment(att, cfg) for att in attachments]
        try:
            await message.reply("\n\n".join(replies)[:2000])
        except discord.HTTPException:
            logger.exception("Failed to reply to message %s", message.id)

    await client.start(cfg.discord.token)


def main() -> None:
    try:
        asyncio.run(_run_bot())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
