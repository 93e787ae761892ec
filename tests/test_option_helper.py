from veritas.option_helper import OptionCell


def test_empty_cell_always_replaced():
    cell = OptionCell()
    calls = []
    replaced, old = cell.replace_if("new", lambda v: calls.append(v) or False)
    assert (replaced, old) == (True, None)
    assert cell.value == "new"
    assert calls == []


def test_replaced_when_callback_true():
    cell = OptionCell("old")
    replaced, old = cell.replace_if("new", lambda v: v == "old")
    assert (replaced, old) == (True, "old")
    assert cell.value == "new"


def test_kept_when_callback_false():
    cell = OptionCell(10)
    replaced, old = cell.replace_if(20, lambda v: v > 15)
    assert (replaced, old) == (False, None)
    assert cell.value == 10


def test_callback_receives_current_value():
    cell = OptionCell(3)
    seen = []
    cell.replace_if(4, lambda v: seen.append(v) or True)
    assert seen == [3]
    assert cell.value == 4