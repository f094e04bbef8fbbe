"""
Tests for the Receipt Chain
"""

import pytest

from certverify import ActionType, CorruptInstance, ReceiptChain


def build_chain(n=3):
    chain = ReceiptChain()
    for i in range(n):
        chain.add_receipt(ActionType.GENERATE, {"index": i}, "in", f"out{i}")
    return chain


class TestReceiptChain:
    """Test chain integrity."""

    def test_empty_chain(self):
        chain = ReceiptChain()
        assert chain.verify_chain()
        assert chain.final_hash == "genesis"

    def test_linking(self):
        chain = build_chain()
        assert chain.verify_chain()
        assert chain.receipts[1].prev_hash == chain.receipts[0].receipt_hash
        assert chain.final_hash == chain.receipts[-1].receipt_hash

    def test_deterministic(self):
        assert build_chain().final_hash == build_chain().final_hash

    def test_tampered_params(self):
        chain = build_chain()
        chain.receipts[1].params["index"] = 99
        assert not chain.verify_chain()

    def test_dropped_receipt(self):
        chain = build_chain()
        del chain.receipts[1]
        assert not chain.verify_chain()

    def test_canonical_round_trip(self):
        chain = build_chain()
        loaded = ReceiptChain.from_canonical(chain.to_canonical())
        assert loaded.verify_chain()
        assert loaded.final_hash == chain.final_hash
        assert len(loaded) == 3

    def test_loaded_chain_detects_edit(self):
        data = build_chain().to_canonical()
        data["receipts"][0]["output_hash"] = "forged"
        assert not ReceiptChain.from_canonical(data).verify_chain()

    def test_loaded_chain_unknown_action(self):
        data = build_chain().to_canonical()
        data["receipts"][1]["action"] = "delete"
        with pytest.raises(CorruptInstance, match="unknown action"):
            ReceiptChain.from_canonical(data)

    def test_loaded_chain_missing_field(self):
        data = build_chain().to_canonical()
        del data["receipts"][0]["prev_hash"]
        with pytest.raises(CorruptInstance, match="prev_hash"):
            ReceiptChain.from_canonical(data)

    def test_loaded_chain_blank_hash(self):
        """A blanked hash would otherwise be recomputed and pass."""
        data = build_chain().to_canonical()
        data["receipts"][2]["params"]["index"] = 7
        data["receipts"][2]["receipt_hash"] = ""
        with pytest.raises(CorruptInstance):
            ReceiptChain.from_canonical(data)

    def test_loaded_chain_not_an_object(self):
        with pytest.raises(CorruptInstance):
            ReceiptChain.from_canonical({"receipts": "none"})
