import copy

import pytest

from formselect.references import (
    collect_references,
    find_selectors,
    iter_components,
    prepare_for_render,
    snapshot_selectors,
)
from formselect.schemas import FormReference


def selector(key, **extra):
    component = {"type": "formselect", "key": key, "storeReference": True}
    component.update(extra)
    return component


@pytest.fixture
def nested_tree():
    """One selector at the top level, one in a panel, one in columns, one in tabs."""
    return [
        selector("top"),
        {"type": "panel", "key": "panel", "components": [
            {"type": "textfield", "key": "name"},
            selector("inPanel"),
        ]},
        {"type": "columns", "key": "cols", "rows": [
            [{"components": [selector("inColumn")]}, {"components": [{"type": "number", "key": "age"}]}],
        ]},
        {"type": "tabs", "key": "tabs", "tabs": [
            {"key": "tab1", "components": []},
            {"key": "tab2", "components": [selector("inTab", storeReference=False)]},
        ]},
    ]


class FakeSelector:
    def __init__(self, key, form_id=None, definition=None):
        self.key = key
        self.form_id = form_id
        self.definition = definition

    def snapshot(self):
        if not self.form_id:
            return None
        return FormReference(formId=self.form_id, formDefinition=self.definition)


def test_every_component_visited_once_in_depth_first_order(nested_tree):
    keys = [component["key"] for component in iter_components(nested_tree)]
    assert keys == ["top", "panel", "name", "inPanel", "cols", "inColumn", "age", "tabs", "inTab"]


def test_children_order_is_components_then_rows_then_tabs():
    node = {
        "key": "root",
        "tabs": [{"components": [{"key": "t"}]}],
        "rows": [[{"components": [{"key": "r"}]}]],
        "components": [{"key": "c"}],
    }
    assert [c["key"] for c in iter_components([node])] == ["root", "c", "r", "t"]


def test_find_selectors_across_all_shapes(nested_tree):
    keys = [component["key"] for component in find_selectors(nested_tree)]
    assert keys == ["top", "inPanel", "inColumn", "inTab"]


@pytest.mark.parametrize("tree", [
    None,
    "components",
    [None, 3, "x"],
    [{"key": "a", "components": None, "rows": "bad", "tabs": {"not": "a list"}}],
    [{"key": "a", "rows": [None, [None, {"components": "bad"}]], "tabs": [None, {"components": None}]}],
])
def test_malformed_child_fields_are_tolerated(tree):
    list(iter_components(tree))
    collect_references(tree, {"a": FormReference(formId="x")})
    prepare_for_render(tree)


def test_trees_without_selectors_are_untouched(nested_tree):
    tree = [c for c in nested_tree if c["type"] != "formselect"]
    tree[0]["components"] = [{"type": "textfield", "key": "name"}]
    tree[1]["rows"] = [[{"components": []}]]
    tree[2]["tabs"] = [{"components": [{"type": "checkbox", "key": "ok"}]}]
    before = copy.deepcopy(tree)

    collect_references(tree, {"name": FormReference(formId="x")})
    prepare_for_render(tree)

    assert tree == before


def test_collect_references_writes_selection_and_definition(nested_tree):
    definition = {"title": "Address", "components": [{"type": "textfield", "key": "street"}]}
    references = snapshot_selectors([
        FakeSelector("top", "address", definition),
        FakeSelector("inPanel", "contact", {"title": "Contact"}),
        FakeSelector("inColumn", "billing", None),
        FakeSelector("inTab", "shipping", {"title": "Shipping"}),
    ])

    collect_references(nested_tree, references)
    top, panel_sel, column_sel, tab_sel = find_selectors(nested_tree)

    assert top["selectedFormId"] == "address"
    assert top["referencedFormDefinition"] == definition
    assert top["referencedFormDefinition"] is not definition
    assert panel_sel["selectedFormId"] == "contact"
    assert column_sel["selectedFormId"] == "billing"
    assert "referencedFormDefinition" not in column_sel
    # storeReference is off for the tab selector: id only
    assert tab_sel["selectedFormId"] == "shipping"
    assert "referencedFormDefinition" not in tab_sel


def test_collect_references_skips_selectors_without_live_selection(nested_tree):
    references = snapshot_selectors([FakeSelector("top", "address"), FakeSelector("inPanel")])
    assert set(references) == {"top"}

    collect_references(nested_tree, references)
    selected = {c["key"]: c.get("selectedFormId") for c in find_selectors(nested_tree)}
    assert selected == {"top": "address", "inPanel": None, "inColumn": None, "inTab": None}


def test_prepare_for_render_sets_default_value():
    tree = [
        selector("a", selectedFormId="contact"),
        selector("b", selectedFormId=""),
        {"type": "panel", "key": "p", "components": [selector("c")]},
    ]
    prepare_for_render(tree)

    assert tree[0]["defaultValue"] == "contact"
    assert "defaultValue" not in tree[1]
    assert "defaultValue" not in tree[2]["components"][0]


def test_selection_survives_collect_then_prepare(nested_tree):
    references = snapshot_selectors([
        FakeSelector("top", "address"),
        FakeSelector("inColumn", "billing"),
        FakeSelector("inTab", "shipping"),
    ])
    collect_references(nested_tree, references)
    collected = {c["key"]: c.get("selectedFormId") for c in find_selectors(nested_tree)}

    stored = copy.deepcopy(nested_tree)
    prepare_for_render(stored)

    for component in find_selectors(stored):
        assert component.get("selectedFormId") == collected[component["key"]]
        if component.get("selectedFormId"):
            assert component["defaultValue"] == component["selectedFormId"]
