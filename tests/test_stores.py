"""
Tests for the client-side entity stores.
"""

from safeops.stores import RAWStore, VenueStore


class TestEntityStore:
    def test_add_prepends_new_items(self) -> None:
        store = RAWStore()
        store.replace_all([{"id": 1}, {"id": 2}])
        store.add({"id": 3})
        assert [i["id"] for i in store.items] == [3, 1, 2]

    def test_add_replaces_existing_item_in_place(self) -> None:
        store = RAWStore()
        store.replace_all([{"id": 1, "status": "draft"}, {"id": 2}])
        store.add({"id": 1, "status": "submitted"})
        assert store.items == [{"id": 1, "status": "submitted"}, {"id": 2}]
        assert len(store) == 2

    def test_patch_merges(self) -> None:
        store = RAWStore()
        store.replace_all([{"id": 1, "status": "draft", "event_title": "Gala"}])
        store.select(store.items[0])
        store.patch(1, {"status": "submitted"})
        assert store.get(1) == {"id": 1, "status": "submitted", "event_title": "Gala"}
        assert store.selected["status"] == "submitted"

    def test_patch_missing_is_a_noop(self) -> None:
        store = RAWStore()
        store.replace_all([{"id": 1}])
        calls = []
        store.subscribe(calls.append)
        store.patch(9, {"status": "approved"})
        assert store.items == [{"id": 1}]
        assert calls == []

    def test_remove_clears_selection(self) -> None:
        store = RAWStore()
        store.replace_all([{"id": 1}, {"id": 2}])
        store.select({"id": 2})
        store.remove(2)
        assert [i["id"] for i in store.items] == [1]
        assert store.selected is None

    def test_replace_all_refreshes_selection(self) -> None:
        store = RAWStore()
        store.select({"id": 1, "status": "draft", "hazards": []})
        store.replace_all([{"id": 1, "status": "approved"}])
        assert store.selected == {"id": 1, "status": "approved", "hazards": []}

    def test_items_are_copies(self) -> None:
        store = RAWStore()
        item = {"id": 1}
        store.add(item)
        item["id"] = 2
        assert store.get(1) is not None

    def test_listeners(self) -> None:
        store = VenueStore()
        seen = []
        unsubscribe = store.subscribe(lambda s: seen.append(s.loading))
        store.set_loading(True)
        store.set_loading(False)
        unsubscribe()
        store.set_loading(True)
        assert seen == [True, False]

    def test_broken_listener_does_not_stop_others(self) -> None:
        store = VenueStore()
        seen = []

        def broken(_):
            raise RuntimeError("boom")

        store.subscribe(broken)
        store.subscribe(lambda s: seen.append(len(s)))
        store.add({"id": 1})
        assert seen == [1]

    def test_venue_hazards(self) -> None:
        store = VenueStore()
        store.set_venue_hazards([{"id": 5, "rpn": 9}])
        assert store.venue_hazards == [{"id": 5, "rpn": 9}]
