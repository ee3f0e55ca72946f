from todobot.api.dto import BotResponse, BotUpdate
from todobot.api.offsets import last_offset, next_offset


def _batch(*ids: int) -> BotResponse:
    return BotResponse(ok=True, result=[BotUpdate(update_id=i) for i in ids])


def test_last_offset_picks_maximum_not_last():
    assert last_offset(_batch(3, 7, 5)) == 7
    assert last_offset(_batch(7, 5, 3)) == 7
    assert last_offset(_batch(5, 3, 7)) == 7


def test_last_offset_empty_batch_is_none():
    assert last_offset(_batch()) is None


def test_next_offset_keeps_previous_for_empty_batch():
    assert next_offset(12, _batch()) == 12


def test_next_offset_never_goes_backwards():
    assert next_offset(10, _batch(4, 6)) == 10
    assert next_offset(10, _batch(11)) == 11
