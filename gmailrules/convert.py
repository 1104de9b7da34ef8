"""Translation of parsed rules into filters that map directly onto Gmail."""

from __future__ import annotations

import dataclasses
import itertools
import json
from dataclasses import dataclass, field
from typing import Iterable, Optional

from .criteria import CriteriaAST, FunctionType, Leaf, Node, OperationType
from .filters import Actions, Criteria, Filter, Filters
from .gmail import Category

# There's no documented limit on filter size on Gmail, but this educated guess
# is better than nothing.
DEFAULT_SIZE_LIMIT = 20

_NEEDS_QUOTES = set(" \t{}()")


@dataclass
class RuleActions:
    """Actions to be applied to the emails matched by a rule."""

    archive: bool = False
    delete: bool = False
    mark_read: bool = False
    star: bool = False
    mark_spam: Optional[bool] = None
    mark_important: Optional[bool] = None
    category: Optional[Category] = None
    labels: list = field(default_factory=list)
    forward: str = ""


@dataclass
class Rule:
    """Intermediate representation of a Gmail filter."""

    criteria: CriteriaAST
    actions: RuleActions = field(default_factory=RuleActions)


def from_rules(rs: Iterable[Rule]) -> Filters:
    """Translate rules into filters, using the default size limit."""
    return from_rules_with_limit(rs, DEFAULT_SIZE_LIMIT)


def from_rules_with_limit(rs: Iterable[Rule], size_limit: int) -> Filters:
    """Translate rules into filters, splitting those bigger than size_limit."""
    res = Filters()
    for i, rule in enumerate(rs):
        try:
            res.extend(from_rule(rule, size_limit))
        except ValueError as err:
            raise ValueError(f"generating rule #{i}: {err}") from err
    return res


def from_rule(rule: Rule, size_limit: int) -> Filters:
    """Translate a single rule into one or more filters."""
    crits = []
    for c in _split_criteria(rule.criteria, size_limit):
        try:
            crits.append(generate_criteria(c))
        except ValueError as err:
            raise ValueError(f"generating criteria: {err}") from err

    try:
        actions = _generate_actions(rule.actions)
    except ValueError as err:
        raise ValueError(f"generating actions: {err}") from err

    return Filters(
        Filter(criteria=c, action=a) for c, a in itertools.product(crits, actions)
    )


def generate_criteria(crit: CriteriaAST) -> Criteria:
    """Translate a criteria tree into Gmail filter criteria."""
    if isinstance(crit, Node):
        return _generate_node(crit)
    if isinstance(crit, Leaf):
        return _generate_leaf(crit)
    raise ValueError("found unknown criteria node")


def _generate_node(node: Node) -> Criteria:
    if node.operation == OperationType.OR:
        query = ""
        for child in node.children:
            query = _join_queries(query, _criteria_as_string(child))
        return Criteria(query=f"{{{query}}}")

    if node.operation == OperationType.AND:
        res = Criteria()
        for child in node.children:
            res = _join_criteria(res, generate_criteria(child))
        return res

    if node.operation == OperationType.NOT:
        if len(node.children) != 1:
            raise ValueError(
                f"after 'not' got {len(node.children)} children, expected 1"
            )
        return Criteria(query=f"-{_criteria_as_string(node.children[0])}")

    raise ValueError(f"unknown node operation {int(node.operation)}")


def _leaf_query(leaf: Leaf) -> str:
    need_escape = leaf.function != FunctionType.QUERY and not leaf.is_raw
    query = _join_strings(need_escape, leaf.args)
    if len(leaf.args) > 1:
        query = _group_with_operation(query, leaf.grouping)
    return query


def _generate_leaf(leaf: Leaf) -> Criteria:
    query = _leaf_query(leaf)
    fn = leaf.function
    if fn == FunctionType.FROM:
        return Criteria(from_=query)
    if fn == FunctionType.TO:
        return Criteria(to=query)
    if fn == FunctionType.SUBJECT:
        return Criteria(subject=query)
    if fn in (FunctionType.CC, FunctionType.BCC, FunctionType.REPLY_TO, FunctionType.LIST):
        return Criteria(query=f"{fn}:{query}")
    if fn in (FunctionType.HAS, FunctionType.QUERY):
        return Criteria(query=query)
    raise ValueError(f"unknown function type {int(fn)}")


def _criteria_as_string(crit: CriteriaAST) -> str:
    if isinstance(crit, Node):
        query = ""
        for child in crit.children:
            query = _join_queries(query, _criteria_as_string(child))
        return _group_with_operation(query, crit.operation)
    if isinstance(crit, Leaf):
        query = _leaf_query(crit)
        if crit.function in (FunctionType.HAS, FunctionType.QUERY):
            return query
        return f"{crit.function}:{query}"
    raise ValueError("found unknown criteria node")


def _group_with_operation(query: str, op: OperationType) -> str:
    if op == OperationType.OR:
        return f"{{{query}}}"
    if op == OperationType.AND:
        return f"({query})"
    if op == OperationType.NOT:
        return f"-{query}"
    raise ValueError(f"unknown node operation {int(op)}")


def _join_criteria(c1: Criteria, c2: Criteria) -> Criteria:
    return Criteria(
        from_=_join_queries(c1.from_, c2.from_),
        to=_join_queries(c1.to, c2.to),
        subject=_join_queries(c1.subject, c2.subject),
        query=_join_queries(c1.query, c2.query),
    )


def _join_queries(f1: str, f2: str) -> str:
    # Queries are logical operations or functions: no escaping needed.
    if not f1:
        return f2
    if not f2:
        return f1
    return f"{f1} {f2}"


def _join_strings(escape: bool, args: list) -> str:
    if not escape:
        return " ".join(args)
    for a in args:
        if '"' in a:
            raise ValueError(f"invalid quote in {json.dumps(a, ensure_ascii=False)}")
    return " ".join(_escape(a) for a in args)


def _escape(a: str) -> str:
    if _NEEDS_QUOTES.intersection(a):
        return f'"{a}"'
    return a


def _count_nodes(tree: CriteriaAST) -> int:
    # For raw leaves this is imprecise: one argument may hold several operands.
    if isinstance(tree, Node):
        return 1 + sum(_count_nodes(c) for c in tree.children)
    return len(tree.args)


def _chunks(items: list, limit: int) -> list:
    res = []
    rem = list(items)
    while len(rem) > limit:
        res.append(rem[:limit])
        rem = rem[limit:]
    res.append(rem)
    return res


def _split_by_limit(tree: CriteriaAST, limit: int) -> list:
    if isinstance(tree, Node):
        return [Node(tree.operation, chunk) for chunk in _chunks(tree.children, limit)]
    return [
        Leaf(tree.function, tree.grouping, chunk, tree.is_raw)
        for chunk in _chunks(tree.args, limit)
    ]


def _split_criteria(tree: CriteriaAST, limit: int) -> list:
    res = []
    for c in _split_root_or(tree):
        res.extend(_split_big_criteria(c, limit))
    return res


def _split_root_or(tree: CriteriaAST) -> list:
    # All matching Gmail filters apply, so or(a, b, c) => x is the same as
    # three rules a => x, b => x, c => x.
    if not isinstance(tree, Node) or tree.operation != OperationType.OR:
        return [tree]
    return list(tree.children)


def _split_big_criteria(tree: CriteriaAST, limit: int) -> list:
    # Gmail silently stops applying filters that are too big.
    if _count_nodes(tree) < limit:
        return [tree]
    if tree.root_operation() == OperationType.OR:
        return _split_by_limit(tree, limit)
    if tree.root_operation() == OperationType.AND:
        # ({a, b, c} d) => ({a, b} d), (c d)
        return _split_nested_and(tree, limit)
    return [tree]


def _split_nested_and(root: CriteriaAST, limit: int) -> list:
    if not isinstance(root, Node):
        return [root]

    max_children = 0
    child_id = -1
    for i, c in enumerate(root.children):
        count = _count_nodes(c)
        if count > max_children and c.root_operation() == OperationType.OR:
            child_id = i
            max_children = count
    if child_id < 0:
        return [root]
    big_child = root.children[child_id]

    siblings_size = _count_nodes(root) - max_children
    new_limit = max(limit - siblings_size, 1)
    parts = _split_by_limit(big_child, new_limit)

    siblings = [c for i, c in enumerate(root.children) if i != child_id]
    return [
        Node(OperationType.AND, [part, *(s.clone() for s in siblings)])
        for part in parts
    ]


def _from_optional_bool(opt: Optional[bool], positive: bool) -> bool:
    if opt is None:
        return False
    return opt == positive


def _generate_actions(actions: RuleActions) -> list:
    if _from_optional_bool(actions.mark_spam, True):
        raise ValueError(
            "Gmail filters don't allow one to send messages to spam directly"
        )

    first = Actions(
        archive=actions.archive,
        delete=actions.delete,
        mark_important=_from_optional_bool(actions.mark_important, True),
        mark_not_important=_from_optional_bool(actions.mark_important, False),
        mark_read=actions.mark_read,
        category=actions.category,
        mark_not_spam=_from_optional_bool(actions.mark_spam, False),
        star=actions.star,
        forward=actions.forward,
    )
    if not actions.labels:
        return [first]

    # Every Gmail action holds a single label.
    res = [dataclasses.replace(first, add_label=actions.labels[0])]
    res.extend(Actions(add_label=label) for label in actions.labels[1:])
    return res