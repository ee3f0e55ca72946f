import pytest

from todobot.todolist.storage import InMemoryTodoListStorage


@pytest.mark.asyncio
async def test_storage_is_per_chat():
    st = InMemoryTodoListStorage()
    await st.add_item(1, "a")
    await st.add_item(1, "b")
    await st.add_item(2, "c")
    assert await st.get_items(1) == ["a", "b"]
    assert await st.get_items(2) == ["c"]
    assert await st.get_items(3) == []


@pytest.mark.asyncio
async def test_clear_and_returned_list_is_a_copy():
    st = InMemoryTodoListStorage()
    await st.add_item(1, "a")
    items = await st.get_items(1)
    items.append("mutated")
    assert await st.get_items(1) == ["a"]
    await st.clear_list(1)
    assert await st.get_items(1) == []
    await st.clear_list(99)
