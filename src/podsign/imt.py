"""
LeanIMT: Lean Incremental Merkle Tree

Binary Merkle tree with Poseidon(2) as the node hash, as used by POD and
Semaphore. Unlike a padded Merkle tree, a node without a right sibling is
carried to the next level unchanged: it is never hashed with itself and
never paired with a zero.

    leaves a b c d e      level 0
           H(a,b) H(c,d) e      level 1
           H(H(a,b),H(c,d)) e   level 2
           H(H(H(a,b),H(c,d)), e)   root

Supports:
- One-shot root computation over a leaf sequence
- Incremental insertion and in-place leaf updates
- Inclusion proofs whose length depends on the leaf's path
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence, Union

from .errors import EmptyInput
from .field import FieldElement
from .poseidon import poseidon2


Node = FieldElement
NodeInput = Union[int, FieldElement]
HashFn = Callable[[FieldElement, FieldElement], FieldElement]


def _node(value: NodeInput) -> Node:
    return value if isinstance(value, FieldElement) else FieldElement(value)


def _next_level(nodes: Sequence[Node], hash_fn: HashFn) -> List[Node]:
    """Pair nodes left to right; an unpaired last node moves up as is."""
    parents = []
    for i in range(0, len(nodes), 2):
        if i + 1 < len(nodes):
            parents.append(hash_fn(nodes[i], nodes[i + 1]))
        else:
            parents.append(nodes[i])
    return parents


def build_root(leaves: Iterable[NodeInput], hash_fn: HashFn = poseidon2) -> Node:
    """
    Root of the LeanIMT over `leaves`, in order.

    A single leaf is its own root. Raises EmptyInput for no leaves.
    """
    level = [_node(leaf) for leaf in leaves]
    if not level:
        raise EmptyInput("Cannot build LeanIMT root of zero leaves")

    while len(level) > 1:
        level = _next_level(level, hash_fn)
    return level[0]


@dataclass
class LeanIMTMerkleProof:
    """
    Inclusion proof for one leaf.

    `index` encodes the path: bit i set means the node at step i is a right
    child. Levels where the node was carried up contribute neither a sibling
    nor a bit, so the proof may be shorter than the tree depth.
    """
    root: Node
    leaf: Node
    index: int
    siblings: List[Node]

    def verify(self, hash_fn: HashFn = poseidon2) -> bool:
        """Recompute the root from leaf and siblings."""
        node = self.leaf
        for i, sibling in enumerate(self.siblings):
            if (self.index >> i) & 1:
                node = hash_fn(sibling, node)
            else:
                node = hash_fn(node, sibling)
        return node == self.root


class LeanIMT:
    """
    Incremental LeanIMT.

    Properties:
    - Root always equals build_root(leaves)
    - O(log n) insert and update
    - O(log n) proof generation and verification
    """

    def __init__(self, leaves: Iterable[NodeInput] = (), hash_fn: HashFn = poseidon2):
        self.hash_fn = hash_fn
        self.nodes: List[List[Node]] = [[]]
        self.insert_many(leaves)

    # =========================================================================
    # Accessors
    # =========================================================================

    @property
    def leaves(self) -> List[Node]:
        return list(self.nodes[0])

    @property
    def size(self) -> int:
        return len(self.nodes[0])

    @property
    def depth(self) -> int:
        return len(self.nodes) - 1

    @property
    def root(self) -> Node:
        if self.size == 0:
            raise EmptyInput("Empty LeanIMT has no root")
        return self.nodes[self.depth][0]

    def index_of(self, leaf: NodeInput) -> int:
        """Index of the first occurrence of `leaf`, or -1."""
        target = _node(leaf)
        for i, value in enumerate(self.nodes[0]):
            if value == target:
                return i
        return -1

    def has(self, leaf: NodeInput) -> bool:
        return self.index_of(leaf) != -1

    # =========================================================================
    # Mutation
    # =========================================================================

    def insert(self, leaf: NodeInput) -> None:
        """Append a leaf, recomputing only the path to the root."""
        index = self.size
        depth = self.depth
        if (1 << depth) < index + 1:
            depth += 1

        node = _node(leaf)
        for level in range(depth):
            if level >= len(self.nodes):
                self.nodes.append([])
            row = self.nodes[level]
            if index < len(row):
                row[index] = node
            else:
                row.append(node)

            if index & 1:
                node = self.hash_fn(row[index - 1], node)
            index >>= 1

        self.nodes[depth:] = [[node]]

    def insert_many(self, leaves: Iterable[NodeInput]) -> None:
        """Append several leaves and rebuild the affected levels."""
        new_leaves = [_node(leaf) for leaf in leaves]
        if not new_leaves:
            return

        level = self.nodes[0] + new_leaves
        nodes = [level]
        while len(level) > 1:
            level = _next_level(level, self.hash_fn)
            nodes.append(level)
        self.nodes = nodes

    def update(self, index: int, new_leaf: NodeInput) -> None:
        """Replace the leaf at `index` and recompute its path."""
        if index < 0 or index >= self.size:
            raise IndexError(f"Index {index} out of range [0, {self.size})")

        node = _node(new_leaf)
        for level in range(self.depth):
            row = self.nodes[level]
            row[index] = node
            if index & 1:
                node = self.hash_fn(row[index - 1], node)
            elif index + 1 < len(row):
                node = self.hash_fn(node, row[index + 1])
            index >>= 1

        self.nodes[self.depth][0] = node

    # =========================================================================
    # Proofs
    # =========================================================================

    def generate_proof(self, index: int) -> LeanIMTMerkleProof:
        """
        Generate an inclusion proof for the leaf at `index`.

        Args:
            index: Leaf index (0-based)
        """
        if index < 0 or index >= self.size:
            raise IndexError(f"Index {index} out of range [0, {self.size})")

        leaf = self.nodes[0][index]
        siblings: List[Node] = []
        path: List[int] = []

        current = index
        for level in range(self.depth):
            is_right = current & 1
            sibling_index = current - 1 if is_right else current + 1
            row = self.nodes[level]
            if sibling_index < len(row):
                path.append(is_right)
                siblings.append(row[sibling_index])
            current >>= 1

        path_index = 0
        for i, bit in enumerate(path):
            path_index |= bit << i

        return LeanIMTMerkleProof(
            root=self.root,
            leaf=leaf,
            index=path_index,
            siblings=siblings,
        )

    def verify_proof(self, proof: LeanIMTMerkleProof) -> bool:
        """Verify a proof against this tree's current root."""
        return proof.root == self.root and proof.verify(self.hash_fn)
