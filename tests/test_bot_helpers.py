from types import SimpleNamespace

import discord
import pytest

from discord_roster_importer.bot import _process_attachment, _roster_attachments, _should_handle_message
from discord_roster_importer.config import AppConfig, DBConfig, DiscordConfig, ImportConfig


class DummyAuthor:
    def __init__(self, bot: bool):
        self.bot = bot


class DummyChannel:
    def __init__(self, id: int):
        self.id = id


class DummyAttachment:
    def __init__(self, filename: str = "", data: bytes = b"", size: int | None = None):
        self.filename = filename
        self._data = data
        self.size = len(data) if size is None else size

    async def read(self) -> bytes:  # mimic discord.Attachment.read
        return self._data


class FailingAttachment(DummyAttachment):
    async def read(self) -> bytes:
        raise discord.HTTPException(SimpleNamespace(status=500, reason="Server Error"), "read failed")


class DummyMessage:
    def __init__(self, *, author: DummyAuthor, channel: DummyChannel, content: str = "", attachments=None):
        self.author = author
        self.channel = channel
        self.content = content
        self.attachments = attachments or []

    async def reply(self, *_args, **_kwargs):  # not used by these tests
        pass


def _cfg(max_bytes: int = 1024, store: bool = False) -> AppConfig:
    return AppConfig(
        db=DBConfig(host="127.0.0.1", port=3306, user="root", password="", database="discord_rosters"),
        discord=DiscordConfig(token=None, allowed_channel_ids=[]),
        importer=ImportConfig(max_attachment_bytes=max_bytes, store_rosters=store),
        log_level=20,
    )


def test_should_handle_message_ignores_bot_author():
    msg = DummyMessage(author=DummyAuthor(bot=True), channel=DummyChannel(id=111))
    assert _should_handle_message(msg, allowed_channel_ids=[111]) is False


def test_should_handle_message_allows_allowed_channel():
    msg = DummyMessage(author=DummyAuthor(bot=False), channel=DummyChannel(id=222))
    assert _should_handle_message(msg, allowed_channel_ids=[222]) is True


def test_should_handle_message_disallows_unlisted_channel():
    msg = DummyMessage(author=DummyAuthor(bot=False), channel=DummyChannel(id=333))
    assert _should_handle_message(msg, allowed_channel_ids=[444]) is False


def test_roster_attachments_filters_unsupported_files():
    roster = DummyAttachment(filename="roster.csv")
    image = DummyAttachment(filename="image.png")
    classlist = DummyAttachment(filename="202601_36419_classlist.xlsx")
    msg = DummyMessage(
        author=DummyAuthor(bot=False),
        channel=DummyChannel(id=555),
        attachments=[roster, image, classlist],
    )
    assert _roster_attachments(msg) == [roster, classlist]


@pytest.mark.asyncio
async def test_process_attachment_replies_with_summary():
    att = DummyAttachment(
        filename="20251206114838_2509_ITWS_1100_01_groupmembers.csv",
        data=b"Group Code,Username,Student Id,First Name,Last Name\nG1,jdoe,1001,Jane,Doe\n",
    )
    reply = await _process_attachment(att, _cfg())
    assert reply.startswith("**20251206114838_2509_ITWS_1100_01_groupmembers.csv**")
    assert "ITWS-1100 (Fall 2025): 1 student(s) in 1 group(s)" in reply
    assert "Jane Doe (jdoe) -> G1" in reply


@pytest.mark.asyncio
async def test_process_attachment_skips_oversized_files():
    att = DummyAttachment(filename="roster.csv", data=b"x" * 10)
    reply = await _process_attachment(att, _cfg(max_bytes=5))
    assert "larger than 5 bytes" in reply


@pytest.mark.asyncio
async def test_process_attachment_reports_download_failure():
    att = FailingAttachment(filename="roster.csv", size=10)
    reply = await _process_attachment(att, _cfg())
    assert "could not download" in reply


@pytest.mark.asyncio
async def test_process_attachment_reports_unsupported_type():
    att = DummyAttachment(filename="notes.txt", data=b"hello")
    reply = await _process_attachment(att, _cfg())
    assert "Unsupported file type: notes.txt" in reply


@pytest.mark.asyncio
async def test_process_attachment_store_without_course_key(monkeypatch):
    def _no_db(*_args, **_kwargs):
        raise AssertionError("database must not be touched")

    monkeypatch.setattr("discord_roster_importer.bot.get_conn", _no_db)
    att = DummyAttachment(filename="roster.csv", data=b"Email\na@x.com\n")
    reply = await _process_attachment(att, _cfg(store=True))
    assert "Not stored: course/term unknown" in reply
