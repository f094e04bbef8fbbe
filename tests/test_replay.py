"""
Tests for Replay Verification
"""

import json

import pytest

from certverify import (
    CorruptInstance,
    DirectoryStore,
    GeneratorConfig,
    InstanceGenerator,
    MemoryStore,
    replay_generation,
)


def generated_store(tmp_path):
    store = DirectoryStore(tmp_path)
    config = GeneratorConfig(count=4, size=5, seed=21, created_at="2026-10-19T00:00:00+00:00")
    InstanceGenerator(config).generate(store)
    return store


class TestReplay:
    """Test regeneration against a stored run."""

    def test_clean_store_passes(self, tmp_path):
        report = replay_generation(generated_store(tmp_path))
        assert report.passed
        assert report.checked == 4
        assert report.mismatches == []

    def test_memory_store_passes(self):
        store = MemoryStore()
        InstanceGenerator(GeneratorConfig(count=2, size=3, seed=1)).generate(store)
        assert replay_generation(store).passed

    def test_missing_instance(self, tmp_path):
        store = generated_store(tmp_path)
        victim = store.ids()[1]
        (tmp_path / "instances" / f"{victim}.json").unlink()
        report = replay_generation(store)
        assert not report.passed
        assert [m["id"] for m in report.mismatches] == [victim]

    def test_reformatted_instance(self, tmp_path):
        """Same content, different bytes: not a faithful reproduction."""
        store = generated_store(tmp_path)
        victim = store.ids()[0]
        path = tmp_path / "instances" / f"{victim}.json"
        path.write_text(json.dumps(json.loads(path.read_text())))
        report = replay_generation(store)
        assert not report.passed
        assert report.mismatches[0]["id"] == victim

    def test_tampered_chain(self, tmp_path):
        store = generated_store(tmp_path)
        manifest = store.get_manifest()
        manifest["chain"]["receipts"][0]["params"]["index"] = 3
        store.put_manifest(manifest)
        report = replay_generation(store)
        assert not report.chain_intact
        assert not report.passed

    def test_no_manifest(self, tmp_path):
        with pytest.raises(CorruptInstance, match="no generation manifest"):
            replay_generation(DirectoryStore(tmp_path))

    def test_malformed_manifest(self, tmp_path):
        store = DirectoryStore(tmp_path)
        store.put_manifest({"config": {"count": 1, "size": 2, "seed": 3}})
        with pytest.raises(CorruptInstance):
            replay_generation(store)

    def test_unknown_receipt_action(self, tmp_path):
        store = generated_store(tmp_path)
        manifest = store.get_manifest()
        manifest["chain"]["receipts"][0]["action"] = "bogus"
        store.put_manifest(manifest)
        with pytest.raises(CorruptInstance, match="unknown action"):
            replay_generation(store)

    def test_invalid_recorded_config(self, tmp_path):
        store = generated_store(tmp_path)
        manifest = store.get_manifest()
        manifest["config"]["edge_probability"] = "half"
        store.put_manifest(manifest)
        with pytest.raises(CorruptInstance):
            replay_generation(store)

    def test_leftover_instances_reported(self, tmp_path):
        """A smaller second run into the same store leaves unlisted files."""
        store = generated_store(tmp_path)
        smaller = GeneratorConfig(count=2, size=5, seed=21, created_at="2026-10-19T00:00:00+00:00")
        InstanceGenerator(smaller).generate(store)
        report = replay_generation(store)
        assert not report.passed
        assert report.checked == 2
        assert sorted(m["id"] for m in report.mismatches) == store.ids()[2:]
