"""Tests for filtering and list/marker synchronization."""

import pytest

from core.map_layer import InMemoryMap
from core.synchronizer import (
    EMPTY_MESSAGE,
    Synchronizer,
    compute_stats,
    marker_icon,
    render_list_entry,
    render_popup,
)
from core.view_state import FILTERS, ViewState, apply_filter
from conftest import FIXED_NOW, TOKYO, make_incident


@pytest.fixture
def dataset():
    return (
        make_incident("highway-0", "congestion", "highway", 35.70, 139.70),
        make_incident("highway-1", "accident", "highway", 35.71, 139.71),
        make_incident("local-0", "restriction", "local", 35.60, 139.60),
        make_incident("local-1", "congestion", "local", 35.61, 139.61),
        make_incident("api-0", "traffic", "local", 35.62, 139.62),
    )


@pytest.fixture
def sync():
    return Synchronizer(InMemoryMap(TOKYO, 10))


class TestApplyFilter:
    def test_all_is_identity(self, dataset):
        assert apply_filter(dataset, "all") == dataset

    def test_category_filter(self, dataset):
        assert [i.id for i in apply_filter(dataset, "highway")] == ["highway-0", "highway-1"]
        assert [i.id for i in apply_filter(dataset, "local")] == ["local-0", "local-1", "api-0"]

    def test_does_not_mutate(self, dataset):
        before = tuple(dataset)
        apply_filter(dataset, "local")
        assert dataset == before


class TestViewState:
    def test_rejects_unknown_filter(self):
        with pytest.raises(ValueError):
            ViewState().set_filter("motorway")

    def test_reconcile_focus_drops_missing_id(self):
        vs = ViewState(focus_id="gone")
        vs.reconcile_focus(["a", "b"])
        assert vs.focus_id is None

    def test_reconcile_focus_keeps_present_id(self):
        vs = ViewState(focus_id="a")
        vs.reconcile_focus(["a", "b"])
        assert vs.focus_id == "a"


class TestRender:
    @pytest.mark.parametrize("f", FILTERS)
    def test_marker_ids_equal_filtered_ids(self, sync, dataset, f):
        filtered = apply_filter(dataset, f)
        sync.render(filtered, dataset)
        expected = {i.id for i in dataset if f == "all" or i.category == f}
        assert set(sync.marker_ids()) == expected
        assert set(sync.list_ids()) == expected
        assert sync.marker_ids() == sync.list_ids()

    def test_render_twice_does_not_accumulate(self, sync, dataset):
        sync.render(dataset, dataset)
        sync.render(dataset, dataset)
        assert len(sync.markers) == len(dataset)
        assert len(sync.map.markers) == len(dataset)
        assert sorted(sync.marker_ids()) == sorted(i.id for i in dataset)

    def test_rerender_with_smaller_set_removes_old_markers(self, sync, dataset):
        sync.render(dataset, dataset)
        sync.render(apply_filter(dataset, "highway"), dataset)
        assert {m.id for m in sync.map.markers.values()} == {"highway-0", "highway-1"}

    def test_empty_filtered_shows_placeholder(self, sync, dataset):
        sync.render((), dataset)
        assert sync.list.mode == "empty"
        assert sync.list.message == EMPTY_MESSAGE
        assert sync.marker_ids() == []

    @pytest.mark.parametrize("f", FILTERS)
    def test_stats_over_unfiltered_dataset(self, sync, dataset, f):
        sync.render(apply_filter(dataset, f), dataset)
        assert sync.stats == compute_stats(dataset)
        assert sync.display_stats() == {"congestion": 2, "restriction": 1, "accident": 1}

    def test_marker_carries_icon_and_popup(self, sync, dataset):
        sync.render(dataset[:1], dataset)
        marker = sync.markers[0]
        assert marker.metadata == {"id": "highway-0"}
        assert marker.icon.kind == "congestion"
        assert marker.popup["badge"]["label"] == "Congestion"
        assert marker.coordinate == dataset[0].coordinate

    def test_loading_state_leaves_markers(self, sync, dataset):
        sync.render(dataset, dataset)
        sync.list.show_loading()
        assert sync.list.mode == "loading"
        assert len(sync.markers) == len(dataset)


class TestSelect:
    def test_select_pans_and_opens_popup(self, sync, dataset):
        sync.render(dataset, dataset)
        assert sync.select("local-0") is True
        assert sync.map.center == dataset[2].coordinate
        assert sync.map.zoom == 14
        opened = [m.id for m in sync.map.markers.values() if m.popup_open]
        assert opened == ["local-0"]

    def test_select_filtered_out_is_noop(self, sync, dataset):
        sync.render(apply_filter(dataset, "highway"), dataset)
        assert sync.select("local-0") is False
        assert sync.map.center == TOKYO
        assert sync.map.zoom == 10
        assert not any(m.popup_open for m in sync.map.markers.values())


class TestViewNodes:
    def test_list_entry(self):
        entry = render_list_entry(make_incident())
        assert entry["id"] == "highway-0"
        assert entry["badge"] == {"label": "Congestion", "color": "#ef4444"}
        assert entry["observed_at"] == FIXED_NOW.isoformat()
        assert entry["observed"] == "09:05"
        assert (entry["lat"], entry["lng"]) == (35.7, 139.7)

    def test_popup(self):
        popup = render_popup(make_incident(kind="warning"))
        assert popup["badge"]["label"] == "Caution"
        assert popup["title"] == "Tomei Expressway"
        assert popup["observed"] == "09:05"

    def test_unknown_icon_falls_back_to_traffic(self):
        assert marker_icon("meteor").kind == "traffic"

    def test_compute_stats_zero_for_missing_kinds(self):
        stats = compute_stats(())
        assert stats == {"congestion": 0, "restriction": 0, "accident": 0, "warning": 0, "traffic": 0}
