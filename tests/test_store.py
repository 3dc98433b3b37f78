"""Tests for the credentials file section store."""

import os
import shutil
import tempfile
import unittest

from mfarotate.store import (
    find_section,
    load,
    read_section,
    replace_section,
    section_end,
    section_header,
    write,
)


def profile_block(name, suffix):
    """A nine-line profile section with values tagged by suffix."""
    return [
        f"[{name}]",
        f"aws_access_key_id = AKIA{suffix}",
        f"aws_secret_access_key = secret{suffix}",
        f"aws_mfa_device = arn:aws:iam::123456789012:mfa/{name}",
        "aws_mfa_duration = 1h0m0s",
        f"aws_mfa_secret_key = SEED{suffix}",
        "assumed_role = false",
        f"aws_session_token = token{suffix}",
        "expiration = 2099-01-01 00:00:00",
    ]


class TestFindSection(unittest.TestCase):
    """Test section lookup."""

    def test_find_section_present(self):
        lines = ["[default]", "region = us-east-1", "", "[alice]", "key = value"]
        self.assertEqual(find_section(lines, "alice"), (3, True))

    def test_find_section_missing(self):
        lines = ["[default]", "region = us-east-1"]
        self.assertEqual(find_section(lines, "alice"), (-1, False))

    def test_find_section_empty_document(self):
        self.assertEqual(find_section([], "alice"), (-1, False))

    def test_find_section_ignores_surrounding_whitespace(self):
        lines = ["  [alice]  \t"]
        self.assertEqual(find_section(lines, "alice"), (0, True))

    def test_find_section_requires_exact_name(self):
        lines = ["[alice-seed]", "[alice ]", "[ alice]"]
        self.assertEqual(find_section(lines, "alice"), (-1, False))

    def test_find_section_first_duplicate_wins(self):
        lines = ["[alice]", "a = 1", "[alice]", "a = 2"]
        self.assertEqual(find_section(lines, "alice"), (0, True))


class TestSectionEnd(unittest.TestCase):
    """Test section boundary detection."""

    def test_section_end_at_next_header(self):
        lines = ["[alice]", "a = 1", "", "[bob]", "b = 2"]
        self.assertEqual(section_end(lines, 0), 3)

    def test_section_end_last_section(self):
        lines = ["[alice]", "a = 1", "a2 = 3"]
        self.assertEqual(section_end(lines, 0), 3)

    def test_section_end_header_only(self):
        lines = ["[alice]"]
        self.assertEqual(section_end(lines, 0), 1)

    def test_section_end_indented_header(self):
        lines = ["[alice]", "a = 1", "   [bob]"]
        self.assertEqual(section_end(lines, 0), 2)

    def test_section_end_adjacent_headers(self):
        lines = ["[alice]", "[bob]"]
        self.assertEqual(section_end(lines, 0), 1)


class TestReadSection(unittest.TestCase):
    """Test key/value reads of a section body."""

    def test_read_section_values(self):
        lines = ["[alice]", "a = 1", "b=two = three", "junk line", "", "[bob]", "a = 9"]
        self.assertEqual(read_section(lines, "alice"), {"a": "1", "b": "two = three"})

    def test_read_section_missing(self):
        self.assertIsNone(read_section(["[bob]"], "alice"))

    def test_read_section_repeated_key_keeps_first(self):
        lines = ["[alice]", "a = 1", "a = 2"]
        self.assertEqual(read_section(lines, "alice"), {"a": "1"})


class TestReplaceSection(unittest.TestCase):
    """Test section replacement and append."""

    def test_append_when_missing(self):
        lines = ["[default]", "region = us-east-1"]
        new = profile_block("alice", "1")

        result = replace_section(lines, "alice", new)

        self.assertEqual(result, lines + [""] + new)
        self.assertEqual(find_section(result, "alice"), (len(lines) + 1, True))

    def test_append_to_empty_document(self):
        new = profile_block("alice", "1")
        result = replace_section([], "alice", new)
        self.assertEqual(result, [""] + new)

    def test_input_not_modified(self):
        lines = ["[alice]", "a = 1"]
        original = list(lines)
        replace_section(lines, "alice", ["[alice]", "a = 2"])
        replace_section(lines, "bob", ["[bob]", "b = 2"])
        self.assertEqual(lines, original)

    def test_replace_preserves_outside_range(self):
        before = ["# managed elsewhere", "[default]", "Region = eu-west-1", "odd line", ""]
        section = ["[alice]", "a = 1", "custom_field = keep?", ""]
        after = ["[carol]", "c = 3"]
        lines = before + section + after
        new = profile_block("alice", "2")

        result = replace_section(lines, "alice", new)

        i = len(before)
        self.assertEqual(result[:i], before)
        self.assertEqual(result[i : i + len(new)], new)
        self.assertEqual(result[i + len(new) :], after)

    def test_replace_last_section(self):
        lines = ["[bob]", "b = 1", "", "[alice]", "a = 1", "a = 2"]
        new = ["[alice]", "a = 3"]
        result = replace_section(lines, "alice", new)
        self.assertEqual(result, ["[bob]", "b = 1", "", "[alice]", "a = 3"])

    def test_replace_is_idempotent(self):
        lines = ["[default]", "x = 1", ""] + profile_block("alice", "1") + ["", "[bob]", "b = 2"]
        i, _ = find_section(lines, "alice")
        current = lines[i : section_end(lines, i)]

        self.assertEqual(replace_section(lines, "alice", current), lines)

    def test_replace_alice_leaves_bob_untouched(self):
        alice = profile_block("alice", "1")
        bob = profile_block("bob", "9")
        lines = alice + bob
        new_alice = profile_block("alice", "2")

        result = replace_section(lines, "alice", new_alice)

        self.assertEqual(result, new_alice + bob)

    def test_replace_only_first_duplicate(self):
        lines = ["[alice]", "a = 1", "[alice]", "a = 2"]
        result = replace_section(lines, "alice", ["[alice]", "a = 3"])
        self.assertEqual(result, ["[alice]", "a = 3", "[alice]", "a = 2"])

    def test_replace_header_only_section(self):
        lines = ["[alice]", "[bob]", "b = 1"]
        result = replace_section(lines, "alice", ["[alice]", "a = 1"])
        self.assertEqual(result, ["[alice]", "a = 1", "[bob]", "b = 1"])

    def test_replace_requires_header_first(self):
        with self.assertRaises(ValueError):
            replace_section([], "alice", ["a = 1"])
        with self.assertRaises(ValueError):
            replace_section([], "alice", [])
        with self.assertRaises(ValueError):
            replace_section([], "alice", ["[bob]", "a = 1"])

    def test_section_header(self):
        self.assertEqual(section_header("alice-seed"), "[alice-seed]")


class TestLoadWrite(unittest.TestCase):
    """Test reading and writing the credentials file."""

    def setUp(self):
        """Set up test fixtures."""
        self.temp_dir = tempfile.mkdtemp()
        self.creds_file = os.path.join(self.temp_dir, "credentials")

    def tearDown(self):
        """Clean up test fixtures."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_load_nonexistent_file(self):
        with self.assertRaises(FileNotFoundError):
            load(self.creds_file)

    def test_load_empty_file(self):
        open(self.creds_file, "w").close()
        self.assertEqual(load(self.creds_file), [])

    def test_load_strips_terminators(self):
        with open(self.creds_file, "w") as f:
            f.write("[alice]\na = 1\n\n[bob]\n")
        self.assertEqual(load(self.creds_file), ["[alice]", "a = 1", "", "[bob]"])

    def test_load_without_final_newline(self):
        with open(self.creds_file, "w") as f:
            f.write("[alice]\na = 1")
        self.assertEqual(load(self.creds_file), ["[alice]", "a = 1"])

    def test_load_crlf(self):
        with open(self.creds_file, "wb") as f:
            f.write(b"[alice]\r\na = 1\r\n")
        self.assertEqual(load(self.creds_file), ["[alice]", "a = 1"])

    def test_load_keeps_lone_carriage_return(self):
        with open(self.creds_file, "wb") as f:
            f.write(b"[alice]\na = 1\rb = 2\n")
        self.assertEqual(load(self.creds_file), ["[alice]", "a = 1\rb = 2"])

    def test_non_utf8_bytes_round_trip(self):
        content = b"# owner: Jos\xe9\n[bob]\nb = 1\n"
        with open(self.creds_file, "wb") as f:
            f.write(content)

        write(self.creds_file, load(self.creds_file))

        with open(self.creds_file, "rb") as f:
            self.assertEqual(f.read(), content)

    def test_non_utf8_bytes_survive_section_rewrite(self):
        with open(self.creds_file, "wb") as f:
            f.write(b"# owner: Jos\xe9\n[alice]\na = 1\n[bob]\nb = \xff\xfe\n")

        lines = replace_section(load(self.creds_file), "alice", ["[alice]", "a = 2"])
        write(self.creds_file, lines)

        with open(self.creds_file, "rb") as f:
            self.assertEqual(f.read(), b"# owner: Jos\xe9\n[alice]\na = 2\n[bob]\nb = \xff\xfe\n")

    def test_write_then_load_round_trip(self):
        lines = ["", "[alice]", "  indented = yes ", "", "[bob]", "b=1"]
        write(self.creds_file, lines)
        self.assertEqual(load(self.creds_file), lines)

    def test_write_terminates_every_line(self):
        write(self.creds_file, ["[alice]", "a = 1"])
        with open(self.creds_file) as f:
            self.assertEqual(f.read(), "[alice]\na = 1\n")

    def test_write_truncates(self):
        with open(self.creds_file, "w") as f:
            f.write("[old]\n" * 50)
        write(self.creds_file, ["[new]"])
        self.assertEqual(load(self.creds_file), ["[new]"])

    def test_write_secure_permissions(self):
        write(self.creds_file, ["[alice]"])
        perms = os.stat(self.creds_file).st_mode & 0o777
        self.assertEqual(perms, 0o600)

    def test_write_creates_directory(self):
        nested_path = os.path.join(self.temp_dir, "nested", "aws", "credentials")
        write(nested_path, ["[alice]"])
        self.assertTrue(os.path.exists(nested_path))


if __name__ == "__main__":
    unittest.main()
