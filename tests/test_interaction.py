"""
Tests for the rich selection and confirmation prompts.
"""

from io import StringIO

import pytest
from rich.console import Console

from nvim_time_machine.ui import InteractionManager


@pytest.fixture
def answer(monkeypatch):
    """Feed scripted lines to the prompts; an exhausted script means EOF."""
    def script(*lines):
        remaining = list(lines)

        def fake_input(*args):
            if not remaining:
                raise EOFError
            return remaining.pop(0)

        monkeypatch.setattr("builtins.input", fake_input)

    return script


@pytest.fixture
def interaction():
    return InteractionManager(console=Console(file=StringIO(), width=120))


CHOICES = ["first.zip", "second.zip", "third.zip"]


def test_select_returns_zero_based_index(interaction, answer):
    answer("2")
    assert interaction.select(CHOICES) == 1


def test_select_defaults_to_newest(interaction, answer):
    answer("")
    assert interaction.select(CHOICES) == 0


def test_select_reprompts_on_out_of_range(interaction, answer):
    answer("7", "3")
    assert interaction.select(CHOICES) == 2


@pytest.mark.parametrize("lines", [("q",), ()])
def test_select_cancel_or_eof(interaction, answer, lines):
    answer(*lines)
    assert interaction.select(CHOICES) is None


def test_select_lists_every_choice(interaction, answer):
    answer("1")
    interaction.select(CHOICES)
    output = interaction.console.file.getvalue()
    assert "(1) first.zip" in output
    assert "(3) third.zip" in output


def test_select_with_no_choices(interaction):
    assert interaction.select([]) is None


@pytest.mark.parametrize("line, expected", [("y", True), ("n", False), ("", True)])
def test_confirm(interaction, answer, line, expected):
    answer(line)
    assert interaction.confirm("Backup?") is expected


def test_confirm_eof_uses_configured_default(answer):
    answer()
    interaction = InteractionManager(console=Console(file=StringIO()), default_backup=False)
    assert interaction.confirm("Backup?") is False
