import pytest

from climviz.engine import FilterState, RegionFilterState, UnknownValueError


def test_initial_selection_enables_everything(emissions_store):
    state = FilterState(store=emissions_store)

    assert state.selection.entities == frozenset(emissions_store.entities)
    assert state.selection.categories == frozenset(emissions_store.categories)


def test_undo_redo_history(emissions_store):
    state = FilterState(store=emissions_store)
    start = state.selection

    assert state.toggle_entity("France")
    assert state.toggle_category("Energy")
    assert state.undo()
    assert "Energy" in state.selection.categories
    assert state.undo()
    assert state.selection == start
    assert not state.undo()

    assert state.redo()
    assert "France" not in state.selection.entities
    # a new change drops the redo stack
    state.toggle_entity("Germany")
    assert not state.redo()


def test_no_op_changes_are_not_recorded(emissions_store):
    state = FilterState(store=emissions_store)

    assert not state.set_category("Energy", True)
    assert not state.reset()
    assert not state.undo()


def test_unknown_values_are_rejected(emissions_store):
    state = FilterState(store=emissions_store)

    with pytest.raises(UnknownValueError):
        state.toggle_category("Mining")
    with pytest.raises(ValueError):
        state.set_sort_mode("shuffle")


def test_region_state_keeps_one_region(disaster_store):
    state = RegionFilterState(store=disaster_store)
    assert state.active_region == "Global"

    with pytest.raises(ValueError):
        state.set_entities(["Global", "Asia"])

    state.toggle_category("Storm")
    state.set_sort_mode("desc")
    state.select_only_entity("Asia")
    assert state.hidden_categories == ["Storm"]

    state.reset()
    assert state.active_region == "Asia"
    assert state.hidden_categories == []
    assert state.selection.sort_mode == "desc"
