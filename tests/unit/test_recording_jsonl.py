from pathlib import Path

from todobot.api.dto import BotUpdate
from todobot.observability.recording import read_jsonl, read_updates, write_jsonl, write_updates


def test_write_and_read_jsonl(tmp_path: Path):
    events = [{"update_id": 1}, {"update_id": 2, "message": {"message_id": 1, "chat": {"id": 5}, "text": "é"}}]
    file = tmp_path / "rec" / "updates.jsonl"
    assert write_jsonl(file, events) == 2
    assert list(read_jsonl(file)) == events


def test_write_updates_appends(tmp_path: Path):
    file = tmp_path / "updates.jsonl"
    write_updates(file, [BotUpdate(update_id=1)])
    write_updates(file, [BotUpdate(update_id=2)])
    assert [u.update_id for u in read_updates(file)] == [1, 2]
