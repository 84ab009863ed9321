"""
History DAG used for point location in incremental triangulations.

Every triangle that ever existed is a node. When a triangle is split or flipped
away, the triangles replacing it are registered as its children, so the current
triangulation is exactly the set of leaves and a point can be located by walking
down from the root through the triangles that contain it. Nodes are never
removed. A node reached through two parents (after an edge flip or an on-edge
split) is stored once.
"""
from collections import deque
from collections.abc import Callable, Hashable, Iterator


class HistoryDAG:
    """
    Directed acyclic graph over hashable node keys.

    Attributes:
        root (Hashable | None): The node registered with `add_root_node`.
    """
    def __init__(self):
        self.root: Hashable | None = None
        self._children: dict[Hashable, list[Hashable]] = {}

    def __len__(self) -> int:
        return len(self._children)

    def __contains__(self, node: Hashable) -> bool:
        return node in self._children

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._children)

    def add_root_node(self, node: Hashable) -> None:
        """Registers the root node (the initial enclosing triangle)."""
        self.root = node
        self._children.setdefault(node, [])

    def add_children(self, parent: Hashable, *children: Hashable) -> None:
        """
        Appends `children` to `parent`'s child list.

        A child seen for the first time is registered with an empty child list.
        Adding the same child twice to one parent is ignored.
        """
        child_list = self._children.setdefault(parent, [])
        for child in children:
            if child not in child_list:
                child_list.append(child)
            self._children.setdefault(child, [])

    def has_children(self, node: Hashable) -> bool:
        return bool(self._children.get(node))

    def get_children(self, node: Hashable) -> tuple:
        """Children of `node` in insertion order (empty for leaves and unknown nodes)."""
        return tuple(self._children.get(node, ()))

    def get_leaves(self) -> list:
        """Nodes without children, in registration order."""
        return [node for node, children in self._children.items() if not children]

    def find_leaf(self, accept: Callable[[Hashable], bool]) -> Hashable | None:
        """
        Breadth-first descent from the root towards a leaf accepted by `accept`.

        Subtrees whose node is rejected are pruned, and each node is visited at
        most once. Point location passes a containment test here: a triangle that
        does not contain the point cannot have a descendant that does.

        Returns:
            Hashable | None: The first accepted leaf, or None if the root is rejected
                             or no accepted leaf is reachable.
        """
        if self.root is None or not accept(self.root):
            return None
        queue = deque([self.root])
        visited = {self.root}
        while queue:
            node = queue.popleft()
            children = self._children.get(node)
            if not children:
                return node
            for child in children:
                if child not in visited:
                    visited.add(child)
                    if accept(child):
                        queue.append(child)
        return None
