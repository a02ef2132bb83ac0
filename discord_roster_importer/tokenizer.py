from __future__ import annotations

"""Minimal CSV line tokenizer used by every CSV extractor.

LMS exports are small, line-oriented files, so lines are split and
tokenized one at a time rather than through a streaming reader.

Example
-------
>>> from discord_roster_importer.tokenizer import split_csv_line
>>> split_csv_line('"Doe, Jane",jdoe')
['Doe, Jane', 'jdoe']
>>> split_csv_line('"a ""b"" c",x')
['a "b" c', 'x']
"""

from typing import Iterator


def split_csv_line(line: str) -> list[str]:
    """Split one CSV line into fields.

    Parameters
    ----------
    line : str
        A single line without its terminator.

    Returns
    -------
    list of str
        The fields in order. Always contains at least one element, so an
        empty line yields ``['']``.

    Notes
    -----
    Never raises. An unterminated quote takes the rest of the line into
    the current field. Inside quotes, ``""`` is consumed as a pair and
    emits one literal quote.
    """
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0
    n = len(line)
    while i < n:
        ch = line[i]
        if ch == '"':
            if in_quotes and i + 1 < n and line[i + 1] == '"':
                current.append('"')
                i += 2
                continue
            in_quotes = not in_quotes
        elif ch == "," and not in_quotes:
            fields.append("".join(current))
            current = []
        else:
            current.append(ch)
        i += 1
    fields.append("".join(current))
    return fields


def split_lines(text: str) -> list[str]:
    """Strip surrounding whitespace and a BOM, then split into lines.

    Only line feeds separate rows and a trailing carriage return is dropped
    from each line; other control characters stay inside their cells.
    """
    text = text.lstrip("\ufeff").strip()
    if not text:
        return []
    return [line[:-1] if line.endswith("\r") else line for line in text.split("\n")]


def iter_csv_rows(text: str, skip_header: bool = True) -> Iterator[list[str]]:
    """Yield tokenized rows from CSV text.

    Parameters
    ----------
    text : str
        Full CSV document.
    skip_header : bool, default True
        Whether to drop the first line.
    """
    lines = split_lines(text)
    if skip_header:
        lines = lines[1:]
    for line in lines:
        yield split_csv_line(line)
