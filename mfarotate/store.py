"""
Section-level access to the shared AWS credentials file.

Sections are handled as opaque ranges of lines rather than parsed into a
mapping, so comments, key casing and fields written by other tools survive a
rewrite untouched. A section starts at a line whose stripped form is
``[name]`` and runs up to the next line whose stripped form starts with
``[``, or to the end of the file.

There is no locking: if another process writes the file between ``load`` and
``write`` its changes are lost.
"""

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

ENCODING = "utf-8"
ENCODING_ERRORS = "surrogateescape"


def section_header(name):
    """Return the bracketed header line for a section name."""
    return f"[{name}]"


def load(path):
    """
    Read the credentials file into a list of lines.

    Line terminators are not kept (a CRLF ending loses its carriage return too) and a
    trailing newline does not produce an extra empty entry. Bytes that are not
    valid UTF-8 are carried through as surrogates so that write() restores them.

    Args:
        path: Path to the credentials file

    Returns:
        list of str, one per line

    Raises:
        FileNotFoundError: If the file does not exist
        OSError: For any other read failure
    """
    with open(path, "r", encoding=ENCODING, errors=ENCODING_ERRORS, newline="") as f:
        content = f.read()

    if not content:
        return []

    lines = content.split("\n")
    if content.endswith("\n"):
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def find_section(lines, name):
    """
    Locate the header line of a section.

    Only the first matching header is reported; later duplicates are never
    visited.

    Args:
        lines: Document lines
        name: Section name without brackets

    Returns:
        tuple: (index: int, found: bool), index is -1 when not found
    """
    header = section_header(name)
    for i, line in enumerate(lines):
        if line.strip() == header:
            return i, True
    return -1, False


def section_end(lines, start):
    """
    Return the index one past the last line of the section starting at ``start``.

    The header line itself is never treated as a terminator.
    """
    for i in range(start + 1, len(lines)):
        if lines[i].strip().startswith("["):
            return i
    return len(lines)


def read_section(lines, name):
    """
    Read the key/value pairs of a section body.

    Each line is split on its first ``=`` and both sides are stripped. Lines
    without ``=`` are skipped. A key repeated within the section keeps its
    first value.

    Returns:
        dict of the section's values, or None if the section does not exist
    """
    index, found = find_section(lines, name)
    if not found:
        return None

    values = {}
    for line in lines[index + 1 : section_end(lines, index)]:
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        values.setdefault(key.strip(), value.strip())
    return values


def replace_section(lines, name, new_lines):
    """
    Replace a section with new content, or append it if missing.

    Args:
        lines: Document lines (not modified)
        name: Section name without brackets
        new_lines: Replacement lines; the first one must be the section header

    Returns:
        list of str: The rewritten document

    Raises:
        ValueError: If new_lines does not start with the header for ``name``
    """
    header = section_header(name)
    if not new_lines or new_lines[0].strip() != header:
        raise ValueError(f"Replacement for section '{name}' must start with '{header}'")

    index, found = find_section(lines, name)
    if not found:
        logger.debug("Appending new section %s", header)
        return list(lines) + [""] + list(new_lines)

    end = section_end(lines, index)
    logger.debug("Replacing section %s at lines %d-%d", header, index, end)
    return lines[:index] + list(new_lines) + lines[end:]


def write(path, lines):
    """
    Write the document back to disk, replacing the previous content.

    Each line is terminated with a newline. The parent directory is created if
    needed and a new file is created with owner-only permissions. The file is
    truncated before writing; an interrupted write can leave it incomplete.
    """
    Path(path).parent.mkdir(parents=True, exist_ok=True)

    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    try:
        f = os.fdopen(fd, "w", encoding=ENCODING, errors=ENCODING_ERRORS, newline="")
    except Exception:
        os.close(fd)
        raise
    with f:
        f.write("".join(line + "\n" for line in lines))
    logger.debug("Wrote %d lines to %s", len(lines), path)
