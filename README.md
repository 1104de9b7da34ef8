# gmailrules

A library for working with Gmail filters and labels as plain Python data.
It has no runtime dependencies.

## What it offers

- `gmailrules.criteria`: filter criteria as a tree of `Node` (and / or / not)
  and `Leaf` (a `FunctionType` such as from, to, subject, list, applied to
  arguments). `simplify_criteria` flattens nested operators, groups repeated
  functions, removes redundant operators and double negations, and sorts the
  tree.
- `gmailrules.convert`: `Rule` and `RuleActions`, and `from_rules`,
  `from_rules_with_limit` and `from_rule`, which turn rules into Gmail
  `Filter`s. A top-level OR becomes one filter per branch, filters larger
  than the size limit (20 by default) are split, and several labels become
  several filters. Invalid input raises `ValueError`.
- `gmailrules.filters`: `Filter`, `Filters`, `Criteria` and `Actions`. A
  filter prints as an indented summary of its criteria and actions.
- `gmailrules.filterdiff`: `diff(upstream, local)` returns a `FiltersDiff` of
  added and removed filters, ignoring IDs and duplicates. Similar added and
  removed filters are paired (using `gmailrules.munkres.Munkres`) so that
  printing the diff shows each change next to the filter it replaces.
- `gmailrules.labels`: `Label`, `Color`, `Labels.validate()`,
  `diff_labels(upstream, local)` returning a `LabelsDiff`, and
  `validate_diff`, which refuses to remove a label still used by a filter.
- `gmailrules.gmailapi`: `export_filters` and `import_filters` convert
  between filters and Gmail API shaped objects (`GmailFilter`,
  `GmailFilterAction`, `GmailFilterCriteria`), using a `LabelMap` to go
  between label names and IDs. Import skips invalid filters and then raises
  `PartialImportError`, whose `filters` attribute holds the valid ones.
- `gmailrules.xmlexport`: `Exporter(now=None).export(author, filters, w)`
  writes filters in the XML format Gmail imports filters from.
- `gmailrules.jsonnet`: `marshal_jsonnet(v, w, header)` writes a value as
  indented JSON with unquoted keys, so that it reads like Jsonnet.
- `gmailrules.fakegmail`: `FakeGmail`, an in-memory stand-in for the labels
  and filters parts of the Gmail service, raising `StatusError` with an HTTP
  status on bad requests. Useful in tests.
- `gmailrules.errors`: helpers for attaching notes to errors (`with_details`,
  `details`) and combining several errors (`combine`, `MultiError`).

## Install

```
pip install .
```

## Example

```python
from gmailrules.criteria import Leaf, FunctionType, OperationType
from gmailrules.convert import Rule, RuleActions, from_rules
from gmailrules.filterdiff import diff

rules = [
    Rule(
        criteria=Leaf(
            function=FunctionType.FROM,
            grouping=OperationType.OR,
            args=["alice@example.com", "bob@example.com"],
        ),
        actions=RuleActions(archive=True, labels=["friends"]),
    )
]
local = from_rules(rules)

changes = diff(upstream=[], local=local)
if not changes.empty():
    print(changes)
```

## What it does not do

- It does not talk to Gmail: there is no HTTP client and no authentication.
  `FakeGmail` keeps everything in memory and serves no network requests.
- It does not read configuration files; rules are built in Python.
- It has no command-line program.

## Tests

```
pip install ".[test]"
pytest
```