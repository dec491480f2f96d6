"""
Gather list ledger tests.

Covers:
  - add: creation, additive extension, link order, manual (keyless) adds
  - set_have / increment_have clamping and unknown-item no-ops
  - remove / clear
  - Persistence round-trip and corrupt stored data
  - Legacy-shape migration (missing sources, totals without links)
"""

import json
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from checklist_service import (  # noqa: E402
    ChecklistEntry,
    ChecklistLink,
    ChecklistStore,
    dump_checklist,
    migrate_checklist,
)
from storage import MemoryStorage  # noqa: E402

K1 = "workbench|gunsmith-2|level-2|metal-parts"
K2 = "project|expedition|foundation|metal-parts"


class TestAdd:
    def test_creates_entry(self, checklist_store):
        entry = checklist_store.add("metal-parts", "Metal Parts", 20, K1, "Workbench: Gunsmith")
        assert entry.total == 20
        assert entry.have == 0
        assert entry.links == [ChecklistLink(key=K1, need=20, source="Workbench: Gunsmith")]

    def test_additive_and_order_preserving(self, checklist_store):
        checklist_store.add("metal-parts", "Metal Parts", 2, K1, "A")
        entry = checklist_store.add("metal-parts", "Metal Parts", 5, K2, "B")
        assert entry.total == 7
        assert [(l.key, l.need, l.source) for l in entry.links] == [(K1, 2, "A"), (K2, 5, "B")]

    def test_repeated_key_appends_new_link(self, checklist_store):
        checklist_store.add("metal-parts", "Metal Parts", 2, K1, "A")
        entry = checklist_store.add("metal-parts", "Metal Parts", 3, K1, "A")
        assert entry.total == 5
        assert [l.need for l in entry.links] == [2, 3]

    def test_add_keeps_have(self, checklist_store):
        checklist_store.add("metal-parts", "Metal Parts", 4, K1, "A")
        checklist_store.set_have("metal-parts", 3)
        entry = checklist_store.add("metal-parts", "Metal Parts", 5, K2, "B")
        assert entry.have == 3

    def test_manual_add_records_keyless_link(self, checklist_store):
        entry = checklist_store.add("fabric", "Fabric", 6)
        assert entry.total == 6
        assert entry.links == [ChecklistLink(need=6, source="Added manually")]
        entry = checklist_store.add("fabric", "Fabric", 2, source="Crafting plan")
        assert entry.total == 8
        assert [(l.key, l.need, l.source) for l in entry.links] == [
            (None, 6, "Added manually"),
            (None, 2, "Crafting plan"),
        ]

    def test_linked_add_without_source_infers_one(self, requirement_index, checklist_storage):
        store = ChecklistStore(checklist_storage, requirement_index)
        entry = store.add("metal-parts", "Metal Parts", 20, K1)
        assert entry.links[0].source == "Workbench: Gunsmith"

    def test_non_positive_quantity_is_ignored(self, checklist_store):
        assert checklist_store.add("fabric", "Fabric", 0) is None
        assert checklist_store.add("fabric", "Fabric", -2, K1) is None
        assert checklist_store.items == {}

    def test_has_link(self, checklist_store):
        checklist_store.add("metal-parts", "Metal Parts", 2, K1, "A")
        assert checklist_store.has_link("metal-parts", K1)
        assert not checklist_store.has_link("metal-parts", K2)
        assert not checklist_store.has_link("fabric", K1)

    def test_sources_distinct_in_order(self, checklist_store):
        checklist_store.add("metal-parts", "Metal Parts", 2, K1, "B")
        checklist_store.add("metal-parts", "Metal Parts", 2, K2, "A")
        entry = checklist_store.add("metal-parts", "Metal Parts", 2, K1, "B")
        assert entry.sources() == ["B", "A"]


class TestHave:
    @pytest.mark.parametrize("have, expected", [(-5, 0), (0, 0), (4, 4), (7, 7), (50, 7)])
    def test_set_have_clamped(self, checklist_store, have, expected):
        checklist_store.add("metal-parts", "Metal Parts", 7, K1, "A")
        assert checklist_store.set_have("metal-parts", have).have == expected
        assert checklist_store.get("metal-parts").have == expected

    def test_set_have_unknown_item_is_silent(self, checklist_store, checklist_storage):
        assert checklist_store.set_have("nothing", 3) is None
        assert checklist_store.items == {}
        assert checklist_storage.writes == 0

    def test_increment_have(self, checklist_store):
        checklist_store.add("metal-parts", "Metal Parts", 3, K1, "A")
        checklist_store.increment_have("metal-parts", 2)
        assert checklist_store.increment_have("metal-parts", 2).have == 3
        assert checklist_store.increment_have("metal-parts", -10).have == 0

    def test_increment_unknown_item_is_silent(self, checklist_store):
        assert checklist_store.increment_have("nothing", 1) is None


class TestRemoveAndClear:
    def test_remove(self, checklist_store):
        checklist_store.add("metal-parts", "Metal Parts", 3, K1, "A")
        checklist_store.add("fabric", "Fabric", 1)
        checklist_store.remove("metal-parts")
        assert list(checklist_store.items) == ["fabric"]

    def test_remove_unknown_is_silent(self, checklist_store):
        checklist_store.remove("nothing")
        assert checklist_store.items == {}

    def test_clear(self, checklist_store):
        checklist_store.add("metal-parts", "Metal Parts", 3, K1, "A")
        checklist_store.clear()
        assert checklist_store.items == {}


class TestPersistence:
    def test_reload_round_trip(self, checklist_storage):
        store = ChecklistStore(checklist_storage)
        store.add("metal-parts", "Metal Parts", 2, K1, "A")
        store.add("metal-parts", "Metal Parts", 5, K2, "B")
        store.add("fabric", "Fabric", 3)
        store.set_have("metal-parts", 4)
        reloaded = ChecklistStore(checklist_storage)
        assert reloaded.items == store.items

    def test_stored_shape_uses_camel_case(self, checklist_store, checklist_storage):
        checklist_store.add("metal-parts", "Metal Parts", 2, K1, "A")
        stored = json.loads(checklist_storage.blob)
        assert stored == {
            "metal-parts": {
                "itemId": "metal-parts",
                "name": "Metal Parts",
                "total": 2,
                "have": 0,
                "links": [{"key": K1, "need": 2, "source": "A"}],
            }
        }

    @pytest.mark.parametrize("blob", ["not json", "[]", "7"])
    def test_corrupt_blob_starts_empty(self, blob, caplog):
        with caplog.at_level("WARNING"):
            store = ChecklistStore(MemoryStorage(blob))
        assert store.items == {}
        assert caplog.records

    def test_unreadable_entry_dropped(self):
        blob = json.dumps(
            {
                "fabric": {"itemId": "fabric", "name": "Fabric", "total": 1, "have": 0, "links": [{"key": K1, "need": 1, "source": "A"}]},
                "broken": {"name": "no id"},
            }
        )
        store = ChecklistStore(MemoryStorage(blob))
        assert list(store.items) == ["fabric"]

    def test_failed_write_keeps_state(self, failing_storage_cls):
        store = ChecklistStore(failing_storage_cls(fail_after=1))
        store.add("metal-parts", "Metal Parts", 2, K1, "A")
        with pytest.raises(OSError):
            store.set_have("metal-parts", 2)
        assert store.get("metal-parts").have == 0


def _legacy_blob() -> str:
    return json.dumps(
        {
            "metal-parts": {
                "itemId": "metal-parts",
                "name": "Metal Parts",
                "total": 25,
                "have": 3,
                "links": [
                    {"key": "workbench|gunsmith-2|level-2|metal-parts", "need": 20},
                    {"key": "quest|gone|old|metal-parts", "need": 5},
                ],
            },
            "wires": {"itemId": "wires", "name": "Wires", "total": 6, "have": 0, "links": []},
            "mystery": {"itemId": "mystery", "name": "Mystery", "total": 2, "have": 1, "links": []},
            "fabric": {"itemId": "fabric", "name": "Fabric", "total": 0, "have": 0, "links": []},
        }
    )


class TestLegacyMigration:
    def test_missing_sources_inferred(self, requirement_index):
        store = ChecklistStore(MemoryStorage(_legacy_blob()), requirement_index)
        links = store.get("metal-parts").links
        assert links[0].source == "Workbench: Gunsmith"
        assert links[1].source == "Quests: Supply Run"
        assert [l.need for l in links] == [20, 5]
        assert store.get("metal-parts").have == 3

    def test_links_synthesized_per_source(self, requirement_index):
        store = ChecklistStore(MemoryStorage(_legacy_blob()), requirement_index)
        wires = store.get("wires")
        assert [(l.key, l.need, l.source) for l in wires.links] == [
            (None, 6, "Projects: Expedition"),
            (None, 6, "Workbench: Gunsmith"),
        ]
        assert wires.total == 6

    def test_unknown_source_fallback(self, requirement_index):
        store = ChecklistStore(MemoryStorage(_legacy_blob()), requirement_index)
        assert [(l.need, l.source) for l in store.get("mystery").links] == [(2, "Unknown source")]

    def test_zero_total_without_links_left_alone(self, requirement_index):
        store = ChecklistStore(MemoryStorage(_legacy_blob()), requirement_index)
        assert store.get("fabric").links == []

    def test_migration_persisted_once(self, requirement_index):
        storage = MemoryStorage(_legacy_blob())
        ChecklistStore(storage, requirement_index)
        assert storage.writes == 1
        ChecklistStore(storage, requirement_index)
        assert storage.writes == 1

    def test_no_index_falls_back_to_unknown(self):
        store = ChecklistStore(MemoryStorage(_legacy_blob()))
        assert {l.source for l in store.get("metal-parts").links} == {"Unknown source"}

    def test_migration_idempotent(self, requirement_index):
        items = {
            "metal-parts": ChecklistEntry(
                item_id="metal-parts",
                name="Metal Parts",
                total=9,
                have=0,
                links=[ChecklistLink(key=K1, need=9)],
            ),
            "wires": ChecklistEntry(item_id="wires", name="Wires", total=4),
        }
        once, changed_once = migrate_checklist(items, requirement_index)
        twice, changed_twice = migrate_checklist(once, requirement_index)
        assert changed_once == 2
        assert changed_twice == 0
        assert dump_checklist(twice) == dump_checklist(once)

    def test_current_data_untouched(self, requirement_index, checklist_storage):
        store = ChecklistStore(checklist_storage, requirement_index)
        store.add("metal-parts", "Metal Parts", 2, K1, "Workbench: Gunsmith")
        writes = checklist_storage.writes
        reloaded = ChecklistStore(checklist_storage, requirement_index)
        assert checklist_storage.writes == writes
        assert reloaded.items == store.items
