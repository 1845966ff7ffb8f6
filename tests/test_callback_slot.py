import pytest

from scanodom.callback_slot import CallbackSlot


def test_empty_slot_is_false():
    assert not CallbackSlot()


def test_add_returns_sequential_ids():
    slot = CallbackSlot()
    assert slot.add(lambda: None) == 0
    assert slot.add(lambda: None) == 1
    assert slot


def test_call_invokes_all_in_order():
    slot = CallbackSlot()
    seen = []
    slot.add(lambda x, y: seen.append(("a", x, y)))
    slot.add(lambda x, y: seen.append(("b", x, y)))
    slot(1, 2)
    assert seen == [("a", 1, 2), ("b", 1, 2)]


def test_remove_skips_callback_and_keeps_ids():
    slot = CallbackSlot()
    seen = []
    first = slot.add(lambda: seen.append("first"))
    slot.add(lambda: seen.append("second"))
    slot.remove(first)
    slot.call()
    assert seen == ["second"]
    assert slot.add(lambda: None) == 2


def test_removing_all_makes_slot_false():
    slot = CallbackSlot()
    slot.remove(slot.add(lambda: None))
    assert not slot


def test_remove_unknown_id():
    with pytest.raises(IndexError):
        CallbackSlot().remove(3)


def test_callback_can_mutate_argument():
    slot = CallbackSlot()
    slot.add(lambda items: items.append(1))
    items = []
    slot(items)
    assert items == [1]