import pytest

from todobot.todolist.commands import AddEntry, ClearTodoList, ShowHelp, ShowTodoList, parse_command


@pytest.mark.parametrize("text", ["?", "/help", "/start", "/START", "/help@todo_bot"])
def test_help_variants(text):
    assert parse_command(1, text) == ShowHelp(1)


def test_show_and_clear():
    assert parse_command(2, "/show") == ShowTodoList(2)
    assert parse_command(2, " /Clear ") == ClearTodoList(2)
    assert parse_command(2, "/show@todo_bot") == ShowTodoList(2)


def test_anything_else_is_an_entry():
    cmd = parse_command(3, "  buy milk  ")
    assert isinstance(cmd, AddEntry)
    assert cmd.chat_id == 3 and cmd.content == "buy milk"
    assert parse_command(3, "/unknown thing") == AddEntry(3, "/unknown thing")
    assert parse_command(3, "show me") == AddEntry(3, "show me")
