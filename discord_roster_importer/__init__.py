"""Discord Roster Importer package.

This package classifies and parses course roster exports (registrar
class lists, LMS group exports and ad-hoc CSV/XLSX rosters) into
normalized student and group records, and can persist them into MySQL.
It offers:

- A CLI to classify and parse files (``discord_roster_importer.ingest``)
- A live bot you can send roster attachments to (``discord_roster_importer.bot``)

Notes
-----
- See ``discord_roster_importer.parser`` for the ``parse_file`` entrypoint.
- See ``discord_roster_importer.classifier`` for filename detection.
- See ``discord_roster_importer.extractors`` for the per-format row parsers.
- See ``discord_roster_importer.db`` for schema and persistence helpers.
"""

__all__ = []
