"""
Tests for Instance Stores
"""

import json

import pytest

from certverify import (
    CorruptInstance,
    DirectoryStore,
    InstanceNotFound,
    MalformedCertificate,
    MemoryStore,
    WriteError,
    load_certificate,
    load_instance,
)
from certverify.core.canonical_json import canonical_bytes

from conftest import HOUSE_EDGES, make_instance


@pytest.fixture(params=["memory", "directory"])
def store(request, tmp_path):
    if request.param == "memory":
        return MemoryStore()
    return DirectoryStore(tmp_path / "store")


class TestStoreContract:
    """Behaviour shared by every store."""

    def test_put_get(self, store, tailed_triangle):
        store.put(tailed_triangle)
        assert tailed_triangle.id in store
        assert store.get(tailed_triangle.id) == tailed_triangle
        assert store.ids() == [tailed_triangle.id]
        assert len(store) == 1

    def test_missing(self, store):
        with pytest.raises(InstanceNotFound) as exc:
            store.get("graph-n5-s0-99999")
        assert exc.value.instance_id == "graph-n5-s0-99999"
        assert "graph-n5-s0-99999" not in store

    def test_unsafe_id_is_not_found(self, store):
        with pytest.raises(InstanceNotFound):
            store.get("../etc/passwd")

    def test_unsafe_id_not_written(self, store):
        with pytest.raises(WriteError):
            store.put(make_instance(5, HOUSE_EDGES, instance_id="../escape"))

    def test_identical_put_is_noop(self, store, tailed_triangle):
        store.put(tailed_triangle)
        store.put(tailed_triangle)
        assert len(store) == 1

    def test_immutable(self, store, tailed_triangle):
        store.put(tailed_triangle)
        changed = make_instance(5, [[0, 1]], instance_id=tailed_triangle.id)
        with pytest.raises(WriteError, match="immutable"):
            store.put(changed)
        assert store.get(tailed_triangle.id) == tailed_triangle

    def test_bytes_are_canonical(self, store, tailed_triangle):
        store.put(tailed_triangle)
        assert store.get_bytes(tailed_triangle.id) == canonical_bytes(tailed_triangle.to_canonical())

    def test_manifest(self, store):
        assert store.get_manifest() is None
        store.put_manifest({"chain_hash": "abc"})
        assert store.get_manifest() == {"chain_hash": "abc"}

    def test_iterates_instances(self, store):
        a = make_instance(5, HOUSE_EDGES, instance_id="graph-n5-s0-00000")
        b = make_instance(5, HOUSE_EDGES, instance_id="graph-n5-s0-00001", index=1)
        store.put(b)
        store.put(a)
        assert [i.id for i in store] == [a.id, b.id]


class TestDirectoryStore:
    """Filesystem specifics."""

    def test_layout(self, tmp_path, tailed_triangle):
        store = DirectoryStore(tmp_path)
        store.put(tailed_triangle)
        path = tmp_path / "instances" / f"{tailed_triangle.id}.json"
        assert path.is_file()
        data = json.loads(path.read_text())
        assert data["seed"] == 0
        assert data["format_version"] == 1

    def test_no_temp_files_left(self, tmp_path, tailed_triangle):
        store = DirectoryStore(tmp_path)
        store.put(tailed_triangle)
        leftovers = [p for p in (tmp_path / "instances").iterdir() if p.suffix == ".tmp"]
        assert leftovers == []

    def test_unwritable_root(self, tmp_path, tailed_triangle):
        blocker = tmp_path / "not_a_dir"
        blocker.write_text("x")
        store = DirectoryStore(blocker)
        with pytest.raises(WriteError) as exc:
            store.put(tailed_triangle)
        assert isinstance(exc.value, OSError)
        assert exc.value.__cause__ is not None

    def test_corrupt_file(self, tmp_path, tailed_triangle):
        store = DirectoryStore(tmp_path)
        store.put(tailed_triangle)
        (tmp_path / "instances" / f"{tailed_triangle.id}.json").write_text("{not json")
        with pytest.raises(CorruptInstance):
            store.get(tailed_triangle.id)

    def test_edited_file(self, tmp_path, tailed_triangle):
        store = DirectoryStore(tmp_path)
        store.put(tailed_triangle)
        path = tmp_path / "instances" / f"{tailed_triangle.id}.json"
        data = json.loads(path.read_text())
        data["seed"] = 7
        path.write_text(json.dumps(data))
        with pytest.raises(CorruptInstance):
            store.get(tailed_triangle.id)

    def test_misfiled_record(self, tmp_path, tailed_triangle):
        store = DirectoryStore(tmp_path)
        store.put(tailed_triangle)
        src = tmp_path / "instances" / f"{tailed_triangle.id}.json"
        (tmp_path / "instances" / "graph-other.json").write_bytes(src.read_bytes())
        with pytest.raises(CorruptInstance, match="carries id"):
            store.get("graph-other")

    def test_empty_directory(self, tmp_path):
        assert DirectoryStore(tmp_path / "missing").ids() == []


class TestLoaders:
    """File loaders used by the CLI."""

    def test_load_instance(self, tmp_path, tailed_triangle):
        path = tmp_path / "inst.json"
        path.write_bytes(canonical_bytes(tailed_triangle.to_canonical()))
        assert load_instance(path) == tailed_triangle

    def test_load_instance_missing(self, tmp_path):
        with pytest.raises(InstanceNotFound):
            load_instance(tmp_path / "nope.json")

    def test_load_certificate(self, tmp_path):
        path = tmp_path / "cert.json"
        path.write_text(json.dumps({
            "instance_id": "graph-n5-s0-00000",
            "claim_type": "has_edge",
            "witness": {"edge": [0, 1]},
        }))
        cert = load_certificate(path)
        assert cert.instance_id == "graph-n5-s0-00000"
        assert cert.metadata == {}

    def test_load_certificate_missing(self, tmp_path):
        with pytest.raises(MalformedCertificate):
            load_certificate(tmp_path / "nope.json")

    def test_load_certificate_not_json(self, tmp_path):
        path = tmp_path / "cert.json"
        path.write_text("claim: yes")
        with pytest.raises(MalformedCertificate):
            load_certificate(path)


class TestBlankedHash:
    """Stores reject records whose hash was removed after an edit."""

    def test_directory_store_rejects_blank_hash(self, tmp_path, tailed_triangle):
        store = DirectoryStore(tmp_path)
        store.put(tailed_triangle)
        path = tmp_path / "instances" / f"{tailed_triangle.id}.json"
        data = json.loads(path.read_text())
        data["payload"]["edges"] = [[0, 1]]
        data["content_hash"] = ""
        path.write_text(json.dumps(data))
        with pytest.raises(CorruptInstance):
            store.get(tailed_triangle.id)
        with pytest.raises(CorruptInstance):
            load_instance(path)
