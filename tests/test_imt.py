"""
Tests for the LeanIMT Merkle Accumulator
"""

import pytest

from podsign.errors import EmptyInput
from podsign.field import FieldElement
from podsign.imt import LeanIMT, LeanIMTMerkleProof, build_root
from podsign.poseidon import poseidon2


def reference_root(leaves):
    """Level-by-level root with carried-up odd nodes."""
    level = [FieldElement(v) for v in leaves]
    while len(level) > 1:
        nxt = []
        for i in range(0, len(level), 2):
            if i + 1 < len(level):
                nxt.append(poseidon2(level[i], level[i + 1]))
            else:
                nxt.append(level[i])
        level = nxt
    return level[0]


class TestBuildRoot:
    """One-shot root computation."""

    def test_single_leaf_is_root(self):
        assert build_root([42]) == 42

    def test_two_leaves(self):
        assert build_root([1, 2]) == poseidon2(1, 2)

    def test_odd_leaf_carried_up(self):
        x, y, z = 10, 20, 30
        assert build_root([x, y, z]) == poseidon2(poseidon2(x, y), z)

    def test_five_leaves(self):
        a, b, c, d, e = range(1, 6)
        expected = poseidon2(poseidon2(poseidon2(a, b), poseidon2(c, d)), e)
        assert build_root([a, b, c, d, e]) == expected

    def test_empty_rejected(self):
        with pytest.raises(EmptyInput):
            build_root([])

    def test_empty_is_value_error(self):
        with pytest.raises(ValueError):
            build_root(iter(()))

    def test_order_matters(self):
        assert build_root([1, 2, 3]) != build_root([3, 2, 1])

    def test_custom_hash(self):
        root = build_root([1, 2, 3], hash_fn=lambda a, b: a + b)
        assert root == 6


class TestIncremental:
    """Insertion keeps the root consistent with build_root."""

    @pytest.mark.parametrize("n", range(1, 10))
    def test_insert_matches_build_root(self, n):
        tree = LeanIMT()
        for v in range(n):
            tree.insert(v + 100)
        assert tree.size == n
        assert tree.root == build_root(range(100, 100 + n))
        assert tree.root == reference_root(range(100, 100 + n))

    @pytest.mark.parametrize("n", [1, 2, 3, 4, 7, 8, 9])
    def test_depth(self, n):
        tree = LeanIMT(range(n))
        assert tree.depth == (n - 1).bit_length()

    def test_insert_many_matches_insert(self):
        one_by_one = LeanIMT()
        for v in range(6):
            one_by_one.insert(v)
        batched = LeanIMT([0, 1])
        batched.insert_many([2, 3, 4, 5])
        assert batched.root == one_by_one.root
        assert batched.nodes == one_by_one.nodes

    def test_insert_after_batch(self):
        tree = LeanIMT(range(5))
        tree.insert(5)
        tree.insert(6)
        assert tree.root == build_root(range(7))

    def test_empty_tree(self):
        tree = LeanIMT()
        assert tree.size == 0
        assert tree.depth == 0
        with pytest.raises(EmptyInput):
            tree.root

    def test_insert_many_empty_is_noop(self):
        tree = LeanIMT([1, 2])
        root = tree.root
        tree.insert_many([])
        assert tree.root == root

    def test_leaves_copy(self):
        tree = LeanIMT([1, 2])
        leaves = tree.leaves
        leaves.append(FieldElement(3))
        assert tree.size == 2


class TestUpdate:
    """In-place leaf replacement."""

    @pytest.mark.parametrize("n", [1, 2, 3, 5, 8])
    def test_update_each_index(self, n):
        values = list(range(n))
        tree = LeanIMT(values)
        for i in range(n):
            values[i] = 1000 + i
            tree.update(i, values[i])
            assert tree.root == build_root(values)

    def test_update_out_of_range(self):
        tree = LeanIMT([1, 2, 3])
        with pytest.raises(IndexError):
            tree.update(3, 0)
        with pytest.raises(IndexError):
            tree.update(-1, 0)


class TestLookup:
    """Leaf membership by value."""

    def test_index_of(self):
        tree = LeanIMT([5, 6, 7, 6])
        assert tree.index_of(6) == 1
        assert tree.index_of(FieldElement(7)) == 2
        assert tree.index_of(8) == -1

    def test_has(self):
        tree = LeanIMT([5, 6])
        assert tree.has(5)
        assert not tree.has(9)


class TestProofs:
    """Inclusion proofs."""

    @pytest.mark.parametrize("n", range(1, 10))
    def test_every_leaf_proves(self, n):
        tree = LeanIMT(range(n))
        for i in range(n):
            proof = tree.generate_proof(i)
            assert proof.leaf == i
            assert proof.root == tree.root
            assert proof.verify()
            assert tree.verify_proof(proof)

    def test_carried_leaf_has_short_proof(self):
        # Leaf 4 of 5 skips the two lower levels
        tree = LeanIMT(range(5))
        proof = tree.generate_proof(4)
        assert len(proof.siblings) == 1
        assert proof.index == 1
        assert proof.siblings[0] == build_root(range(4))

    def test_single_leaf_proof(self):
        tree = LeanIMT([9])
        proof = tree.generate_proof(0)
        assert proof.siblings == []
        assert proof.verify()

    def test_tampered_leaf_fails(self):
        tree = LeanIMT(range(6))
        proof = tree.generate_proof(3)
        forged = LeanIMTMerkleProof(proof.root, FieldElement(99), proof.index, proof.siblings)
        assert not forged.verify()

    def test_tampered_sibling_fails(self):
        tree = LeanIMT(range(6))
        proof = tree.generate_proof(2)
        siblings = list(proof.siblings)
        siblings[0] = siblings[0] + 1
        forged = LeanIMTMerkleProof(proof.root, proof.leaf, proof.index, siblings)
        assert not forged.verify()

    def test_wrong_path_fails(self):
        tree = LeanIMT(range(4))
        proof = tree.generate_proof(0)
        forged = LeanIMTMerkleProof(proof.root, proof.leaf, proof.index ^ 1, proof.siblings)
        assert not forged.verify()

    def test_stale_proof_rejected(self):
        tree = LeanIMT(range(4))
        proof = tree.generate_proof(1)
        tree.insert(4)
        assert proof.verify()
        assert not tree.verify_proof(proof)

    def test_proof_out_of_range(self):
        tree = LeanIMT([1])
        with pytest.raises(IndexError):
            tree.generate_proof(1)
