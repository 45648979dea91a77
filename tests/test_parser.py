"""Tests for tokenizing, $$ expansion and command descriptor building."""

import os

import pytest

from smallsh.config import MAX_ARGS
from smallsh.parser import Command, expand, is_ignored, parse_command, tokenize

PID = 12345


class TestIgnoredLines:
    """Blank lines and comments never produce a command."""

    @pytest.mark.parametrize("line", ["", "\n", "   ", "  \n", "# comment", "   # indented", "#echo hi"])
    def test_no_command(self, line: str) -> None:
        assert is_ignored(line)
        assert list(tokenize(line)) == []
        assert parse_command(line) is None

    def test_hash_inside_a_command_is_an_argument(self) -> None:
        cmd = parse_command("echo #not-a-comment")
        assert cmd is not None
        assert cmd.arguments == ["echo", "#not-a-comment"]


class TestTokenize:
    """Whitespace splitting uses spaces and newlines only."""

    def test_splits_on_spaces_and_newline(self) -> None:
        assert list(tokenize("ls  -la   /tmp\n")) == ["ls", "-la", "/tmp"]

    def test_tabs_are_not_delimiters(self) -> None:
        assert list(tokenize("a\tb c")) == ["a\tb", "c"]

    def test_no_quoting(self) -> None:
        assert list(tokenize("echo 'a b'")) == ["echo", "'a", "b'"]

    def test_is_lazy(self) -> None:
        tokens = tokenize("a b")
        assert next(tokens) == "a"


class TestExpand:
    """$$ is replaced by the pid, everywhere in the token."""

    def test_whole_token(self) -> None:
        assert expand("$$", PID) == "12345"

    def test_embedded(self) -> None:
        assert expand("file$$log", PID) == "file12345log"

    def test_repeated(self) -> None:
        assert expand("$$-$$$$", PID) == "12345-1234512345"

    def test_odd_dollar_left_alone(self) -> None:
        assert expand("$$$", PID) == "12345$"
        assert expand("a$b", PID) == "a$b"

    def test_without_marker_is_unchanged(self) -> None:
        once = expand("plain", PID)
        assert once == "plain"
        assert expand(once, PID) == once

    def test_defaults_to_own_pid(self) -> None:
        assert expand("$$") == str(os.getpid())


class TestParseCommand:
    """Descriptor building from token streams."""

    def test_program_and_arguments(self) -> None:
        cmd = parse_command("ls -la /tmp")
        assert cmd == Command(program="ls", arguments=["ls", "-la", "/tmp"])

    def test_redirections(self) -> None:
        cmd = parse_command("sort < in.txt > out.txt")
        assert cmd is not None
        assert cmd.arguments == ["sort"]
        assert cmd.input_path == "in.txt"
        assert cmd.output_path == "out.txt"

    def test_redirection_order_does_not_matter(self) -> None:
        cmd = parse_command("wc > out -l < in")
        assert cmd is not None
        assert cmd.arguments == ["wc", "-l"]
        assert (cmd.input_path, cmd.output_path) == ("in", "out")

    @pytest.mark.parametrize("line", ["cat <", "cat >"])
    def test_missing_redirection_operand_is_ignored(self, line: str) -> None:
        cmd = parse_command(line)
        assert cmd is not None
        assert cmd.arguments == ["cat"]
        assert cmd.input_path is None
        assert cmd.output_path is None

    def test_expansion_applies_to_program_args_and_paths(self) -> None:
        cmd = parse_command("prog$$ arg$$ < in$$ > out$$", pid=PID)
        assert cmd is not None
        assert cmd.program == "prog12345"
        assert cmd.arguments == ["prog12345", "arg12345"]
        assert cmd.input_path == "in12345"
        assert cmd.output_path == "out12345"

    def test_argument_cap(self) -> None:
        line = "echo " + " ".join(str(i) for i in range(MAX_ARGS + 10))
        cmd = parse_command(line)
        assert cmd is not None
        assert len(cmd.arguments) == MAX_ARGS + 1
        assert cmd.arguments[-1] == str(MAX_ARGS - 1)

    def test_redirections_still_parsed_past_the_cap(self) -> None:
        line = "echo " + " ".join("x" for _ in range(MAX_ARGS + 5)) + " > out"
        cmd = parse_command(line)
        assert cmd is not None
        assert cmd.output_path == "out"

    def test_empty_program_rejected(self) -> None:
        with pytest.raises(ValueError):
            Command(program="")


class TestBackground:
    """Only a trailing standalone & backgrounds a command."""

    def test_trailing_ampersand(self) -> None:
        cmd = parse_command("sleep 5 &")
        assert cmd is not None
        assert cmd.background
        assert cmd.arguments == ["sleep", "5"]

    def test_ampersand_followed_by_tokens(self) -> None:
        cmd = parse_command("sleep & 5")
        assert cmd is not None
        assert not cmd.background
        assert cmd.arguments == ["sleep", "5"]

    def test_ampersand_followed_by_redirection(self) -> None:
        cmd = parse_command("sleep 5 & > out")
        assert cmd is not None
        assert not cmd.background
        assert cmd.input_path is None
        assert cmd.output_path == "out"

    def test_attached_ampersand_is_an_argument(self) -> None:
        cmd = parse_command("echo a&")
        assert cmd is not None
        assert not cmd.background
        assert cmd.arguments == ["echo", "a&"]

    def test_background_defaults_to_null_device(self) -> None:
        cmd = parse_command("sleep 5 &")
        assert cmd is not None
        assert cmd.input_path == os.devnull
        assert cmd.output_path == os.devnull

    def test_explicit_redirection_kept_in_background(self) -> None:
        cmd = parse_command("sort < in > out &")
        assert cmd is not None
        assert cmd.background
        assert (cmd.input_path, cmd.output_path) == ("in", "out")

    def test_one_side_defaulted(self) -> None:
        cmd = parse_command("cat < in &")
        assert cmd is not None
        assert cmd.input_path == "in"
        assert cmd.output_path == os.devnull

    def test_foreground_only_mode_overrides(self) -> None:
        cmd = parse_command("sleep 5 &", foreground_only=True)
        assert cmd is not None
        assert not cmd.background
        assert cmd.input_path is None
        assert cmd.output_path is None

    def test_foreground_command_has_no_default_redirection(self) -> None:
        cmd = parse_command("sleep 5")
        assert cmd is not None
        assert cmd.input_path is None
        assert cmd.output_path is None
