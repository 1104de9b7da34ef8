"""Abstract syntax tree of filter criteria and its simplification."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Union

MAX_SIMPLIFY_PASSES = 4


class OperationType(enum.IntEnum):
    """Logical operator."""

    NONE = 0
    AND = 1
    OR = 2
    NOT = 3

    def __str__(self) -> str:
        return _OPERATION_NAMES.get(self, "<unknown>")

    def __format__(self, spec: str) -> str:
        return format(str(self), spec)


_OPERATION_NAMES = {
    OperationType.NONE: "<none>",
    OperationType.AND: "and",
    OperationType.OR: "or",
}


class FunctionType(enum.IntEnum):
    """Criteria function."""

    NONE = 0
    FROM = 1
    TO = 2
    CC = 3
    BCC = 4
    REPLY_TO = 5
    SUBJECT = 6
    LIST = 7
    HAS = 8
    QUERY = 9

    def __str__(self) -> str:
        return _FUNCTION_NAMES.get(self, "<unknown>")

    def __format__(self, spec: str) -> str:
        return format(str(self), spec)


_FUNCTION_NAMES = {
    FunctionType.NONE: "<none>",
    FunctionType.FROM: "from",
    FunctionType.TO: "to",
    FunctionType.CC: "cc",
    FunctionType.BCC: "bcc",
    FunctionType.REPLY_TO: "replyto",
    FunctionType.SUBJECT: "subject",
    FunctionType.LIST: "list",
    FunctionType.HAS: "has",
    FunctionType.QUERY: "query",
}


class Visitor:
    """Visits a criteria tree; by default walks every node."""

    def visit_node(self, n: "Node") -> None:
        for child in n.children:
            child.accept_visitor(self)

    def visit_leaf(self, n: "Leaf") -> None:
        """Leaves have nothing to descend into."""


@dataclass
class Node:
    """A logical operator with child criteria."""

    operation: OperationType
    children: list = field(default_factory=list)

    def root_operation(self) -> OperationType:
        return self.operation

    def root_function(self) -> FunctionType:
        return FunctionType.NONE

    def is_leaf(self) -> bool:
        return False

    def accept_visitor(self, v: Visitor) -> None:
        v.visit_node(self)

    def clone(self) -> "Node":
        return Node(self.operation, [c.clone() for c in self.children])


@dataclass
class Leaf:
    """A function applied to arguments grouped by a logical operator."""

    function: FunctionType
    grouping: OperationType = OperationType.NONE
    args: list = field(default_factory=list)
    is_raw: bool = False

    def root_operation(self) -> OperationType:
        return self.grouping

    def root_function(self) -> FunctionType:
        return self.function

    def is_leaf(self) -> bool:
        return True

    def accept_visitor(self, v: Visitor) -> None:
        v.visit_leaf(self)

    def clone(self) -> "Leaf":
        return Leaf(self.function, self.grouping, list(self.args), self.is_raw)


CriteriaAST = Union[Node, Leaf]


def simplify_criteria(tree: CriteriaAST) -> CriteriaAST:
    """Apply simplifications to a criteria tree and sort it."""
    changes = 1
    passes = 0
    while changes > 0 and passes < MAX_SIMPLIFY_PASSES:
        changes = _logical_grouping(tree)
        changes += _functions_grouping(tree)
        tree, removed = _remove_redundancy(tree)
        changes += removed
        passes += 1
    sort_tree(tree)
    return tree


def _logical_grouping(tree: CriteriaAST) -> int:
    if not isinstance(tree, Node):
        return 0
    count = sum(_logical_grouping(c) for c in tree.children)
    if tree.operation == OperationType.NOT:
        return count

    # and(a, and(b, c)) => and(a, b, c)
    new_children = []
    for child in tree.children:
        if isinstance(child, Node) and child.operation == tree.operation:
            new_children.extend(child.children)
            count += 1
        else:
            new_children.append(child)
    tree.children = new_children
    return count


def _functions_grouping(tree: CriteriaAST) -> int:
    if not isinstance(tree, Node):
        return 0
    count = sum(_functions_grouping(c) for c in tree.children)
    if len(tree.children) <= 1:
        return count

    # and(foo:x bar:y foo:z) => and(foo:(x z) bar:y)
    new_children = []
    functions: dict[FunctionType, list] = {}
    raw_functions: set[FunctionType] = set()
    for child in tree.children:
        if not isinstance(child, Leaf) or (
            len(child.args) > 1 and child.grouping != tree.operation
        ):
            new_children.append(child)
            continue
        functions.setdefault(child.function, []).extend(child.args)
        if child.is_raw:
            raw_functions.add(child.function)

    for ft, args in functions.items():
        new_children.append(Leaf(ft, tree.operation, args, ft in raw_functions))
        count += 1

    tree.children = new_children
    return count


def _remove_redundancy(tree: CriteriaAST) -> tuple[CriteriaAST, int]:
    if not isinstance(tree, Node):
        return tree, 0

    count = 0
    new_children = []
    for child in tree.children:
        new_child, c = _remove_redundancy(child)
        count += c
        new_children.append(new_child)
    tree.children = new_children

    if tree.operation == OperationType.NOT:
        new_root, c = _simplify_not(tree)
        return new_root, count + c

    if len(tree.children) != 1:
        return tree, count
    # or(a) => a
    return tree.children[0], count + 1


def _simplify_not(root: Node) -> tuple[CriteriaAST, int]:
    if len(root.children) != 1:
        return root, 0
    child = root.children[0]
    if not isinstance(child, Node) or child.operation != OperationType.NOT:
        return root, 0
    if len(child.children) != 1:
        return root, 0
    return child.children[0], 1


def _sort_key(n: CriteriaAST) -> tuple:
    return (not n.is_leaf(), int(n.root_operation()), int(n.root_function()))


def sort_tree(tree: CriteriaAST) -> None:
    """Sort the tree in place: leaves first, then nodes, by operation and function."""
    if isinstance(tree, Node):
        for child in tree.children:
            sort_tree(child)
        tree.children.sort(key=_sort_key)