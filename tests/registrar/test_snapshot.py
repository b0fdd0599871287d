"""
Snapshot & Restore Tests

Goal: A snapshot restores to an equivalent registry, and a snapshot
whose indexes disagree is refused whole.
"""

import json
import os

import pytest

from seed_registry.registry import (
    BURN_PRINCIPAL,
    InMemoryAuthoritySet,
    InMemoryLedger,
    SeedRegistry,
    SnapshotError,
)

from .conftest import AUTHORITY, DEFAULT_CALLER, RegistryTestHarness, seed_hash, valid_fields


def _restore(data) -> SeedRegistry:
    return SeedRegistry.from_snapshot(data, InMemoryAuthoritySet({DEFAULT_CALLER}), InMemoryLedger())


class TestSnapshot:

    def test_snapshot_is_json_safe(self, registered: RegistryTestHarness):
        data = registered.registry.snapshot()

        json.dumps(data)
        assert data["varieties"]["0"]["hash"] == seed_hash(1).hex()

    def test_restore_preserves_state(self, registered: RegistryTestHarness):
        registered.registry.update_variety(registered.ctx(block_height=9), 0, "Renamed", "x")

        restored = _restore(registered.registry.snapshot())

        assert restored.get_variety(0) == registered.registry.get_variety(0)
        assert restored.get_variety_update(0) == registered.registry.get_variety_update(0)
        assert restored.authority_contract == AUTHORITY
        assert restored.get_variety_count().value == 1
        assert restored.check_variety_existence(seed_hash(1)).value is True
        assert restored.journal.count() == registered.registry.journal.count()

    def test_restored_registry_keeps_enforcing(self, registered: RegistryTestHarness):
        restored = _restore(registered.registry.snapshot())
        ctx = registered.ctx()

        duplicate = restored.register_variety(ctx, **valid_fields(seed_hash=seed_hash(1)))
        fresh = restored.register_variety(ctx, **valid_fields(seed_hash=seed_hash(2)))

        assert duplicate.value == 106
        assert fresh.ok and fresh.value == 1
        assert restored.set_authority_contract(ctx, "ST3OTHER").ok is False

    def test_save_and_load(self, registered: RegistryTestHarness, tmp_path):
        path = tmp_path / "state" / "registry.json"
        registered.registry.save_snapshot(path)

        loaded = SeedRegistry.load_snapshot(path, InMemoryAuthoritySet(), InMemoryLedger())

        assert loaded.get_variety(0) == registered.registry.get_variety(0)

    def test_load_rejects_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")

        with pytest.raises(SnapshotError):
            SeedRegistry.load_snapshot(path, InMemoryAuthoritySet(), InMemoryLedger())


class TestSnapshotValidation:

    def test_rejects_counter_mismatch(self, registered: RegistryTestHarness):
        data = registered.registry.snapshot()
        data["next_variety_id"] = 5

        with pytest.raises(SnapshotError):
            _restore(data)

    def test_rejects_duplicate_hash(self, configured: RegistryTestHarness):
        configured.register(seed_hash=seed_hash(1))
        configured.register(seed_hash=seed_hash(2))
        data = configured.registry.snapshot()
        data["varieties"]["1"]["hash"] = seed_hash(1).hex()

        with pytest.raises(SnapshotError) as exc:
            _restore(data)
        assert exc.value.variety_id == 1

    def test_rejects_gap_in_ids(self, configured: RegistryTestHarness):
        configured.register(seed_hash=seed_hash(1))
        data = configured.registry.snapshot()
        data["varieties"] = {"3": data["varieties"]["0"]}

        with pytest.raises(SnapshotError):
            _restore(data)

    def test_rejects_unknown_category(self, registered: RegistryTestHarness):
        data = registered.registry.snapshot()
        data["varieties"]["0"]["category"] = "mushroom"

        with pytest.raises(SnapshotError):
            _restore(data)

    def test_rejects_orphan_update(self, registered: RegistryTestHarness):
        data = registered.registry.snapshot()
        data["variety_updates"]["7"] = {
            "update_title": "x",
            "update_description": "",
            "update_timestamp": 1,
            "updater": DEFAULT_CALLER,
        }

        with pytest.raises(SnapshotError):
            _restore(data)

    def test_rejects_unknown_version(self, harness: RegistryTestHarness):
        data = harness.registry.snapshot()
        data["version"] = 99

        with pytest.raises(SnapshotError):
            _restore(data)

    @pytest.mark.parametrize(
        "mutate",
        [
            lambda d: d["varieties"]["0"].update(hash="ab" * 31),
            lambda d: d["varieties"]["0"].update(title=""),
            lambda d: d["varieties"]["0"].update(title="t" * 101),
            lambda d: d["varieties"]["0"].update(maturity_days=400),
            lambda d: d["varieties"]["0"].update(traits=[f"t{i}" for i in range(11)]),
        ],
    )
    def test_rejects_record_breaking_field_rules(self, registered: RegistryTestHarness, mutate):
        data = registered.registry.snapshot()
        mutate(data)

        with pytest.raises(SnapshotError) as exc:
            _restore(data)
        assert exc.value.variety_id == 0

    def test_rejects_invalid_update(self, registered: RegistryTestHarness):
        registered.registry.update_variety(registered.ctx(), 0, "Renamed", "")
        data = registered.registry.snapshot()
        data["variety_updates"]["0"]["update_title"] = ""

        with pytest.raises(SnapshotError):
            _restore(data)

    def test_rejects_burn_principal_authority(self, registered: RegistryTestHarness):
        data = registered.registry.snapshot()
        data["authority_contract"] = BURN_PRINCIPAL

        with pytest.raises(SnapshotError, match="burn"):
            _restore(data)

    def test_rejects_negative_fee(self, registered: RegistryTestHarness):
        data = registered.registry.snapshot()
        data["registration_fee"] = -1

        with pytest.raises(SnapshotError):
            _restore(data)


class TestMalformedSnapshot:
    """Any malformed shape is reported as SnapshotError"""

    @pytest.mark.parametrize("data", [[], "snapshot", None, 1])
    def test_rejects_non_mapping(self, data):
        with pytest.raises(SnapshotError):
            _restore(data)

    @pytest.mark.parametrize(
        "key, value",
        [
            ("varieties", []),
            ("variety_updates", "none"),
            ("journal", {}),
            ("next_variety_id", None),
        ],
    )
    def test_rejects_wrong_section_type(self, registered: RegistryTestHarness, key, value):
        data = registered.registry.snapshot()
        data[key] = value

        with pytest.raises(SnapshotError):
            _restore(data)

    @pytest.mark.parametrize("record", [[], "x", {"hash": 5}])
    def test_rejects_malformed_record(self, registered: RegistryTestHarness, record):
        data = registered.registry.snapshot()
        data["varieties"]["0"] = record

        with pytest.raises(SnapshotError):
            _restore(data)

    def test_rejects_malformed_journal_entry(self, registered: RegistryTestHarness):
        data = registered.registry.snapshot()
        data["journal"].append(["not", "an", "entry"])

        with pytest.raises(SnapshotError):
            _restore(data)

    def test_load_rejects_non_mapping_file(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2]")

        with pytest.raises(SnapshotError):
            SeedRegistry.load_snapshot(path, InMemoryAuthoritySet(), InMemoryLedger())


class TestSaveSnapshot:

    def test_failed_write_keeps_previous_file(self, registered: RegistryTestHarness, tmp_path, monkeypatch):
        path = tmp_path / "registry.json"
        registered.registry.save_snapshot(path)
        before = path.read_text()
        registered.register(seed_hash=seed_hash(2))

        def fail(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr(os, "replace", fail)
        with pytest.raises(OSError):
            registered.registry.save_snapshot(path)

        assert path.read_text() == before
        assert [p.name for p in tmp_path.iterdir()] == ["registry.json"]

    def test_overwrites_existing_file(self, registered: RegistryTestHarness, tmp_path):
        path = tmp_path / "registry.json"
        registered.registry.save_snapshot(path)
        registered.register(seed_hash=seed_hash(2))

        registered.registry.save_snapshot(path)

        assert json.loads(path.read_text())["next_variety_id"] == 2
