"""
Form reference resolution.

A form definition is a tree of component dicts. Children hang off a node in
three shapes::

    {"components": [...]}
    {"rows": [[{"components": [...]}, ...], ...]}     # columns layout
    {"tabs": [{"components": [...]}, ...]}

Selector components (``type == "formselect"``) point at another stored form
through ``selectedFormId`` and, when ``storeReference`` is set, also carry a
copy of that form's definition in ``referencedFormDefinition``.

Saving runs ``snapshot_selectors`` once over the live widgets and then
``collect_references`` over the tree. Loading runs ``prepare_for_render`` so
selectors start out already resolved.
"""
import copy
import logging
from typing import Any, Dict, Iterable, Iterator, List, Mapping

from formselect.schemas import SELECTOR_TYPE, FormReference

logger = logging.getLogger(__name__)


def _child_lists(component: Dict[str, Any]) -> Iterator[list]:
    components = component.get("components")
    if isinstance(components, list):
        yield components

    rows = component.get("rows")
    if isinstance(rows, list):
        for row in rows:
            if not isinstance(row, list):
                continue
            for column in row:
                if isinstance(column, dict) and isinstance(column.get("components"), list):
                    yield column["components"]

    tabs = component.get("tabs")
    if isinstance(tabs, list):
        for tab in tabs:
            if isinstance(tab, dict) and isinstance(tab.get("components"), list):
                yield tab["components"]


def iter_components(tree: Any) -> Iterator[Dict[str, Any]]:
    """Yield every component of the tree once, depth first, parents before children."""
    if not isinstance(tree, list):
        return
    for component in tree:
        if not isinstance(component, dict):
            continue
        yield component
        for children in _child_lists(component):
            yield from iter_components(children)


def is_selector(component: Dict[str, Any]) -> bool:
    return component.get("type") == SELECTOR_TYPE


def find_selectors(tree: Any) -> List[Dict[str, Any]]:
    return [component for component in iter_components(tree) if is_selector(component)]


def snapshot_selectors(selectors: Iterable) -> Dict[str, FormReference]:
    """
    Serialize the current state of live selector widgets.

    Returns a mapping of component key to the widget's full reference (the
    definition is always included; whether it is persisted is decided per
    component by ``collect_references``). Widgets with no selection are left
    out.
    """
    references = {}
    for selector in selectors:
        reference = selector.snapshot()
        if reference is not None:
            references[selector.key] = reference
    return references


def collect_references(tree: Any, references: Mapping[str, FormReference]) -> None:
    """Write the selections in ``references`` onto the matching selector components."""
    for component in find_selectors(tree):
        reference = references.get(component.get("key"))
        if reference is None or not reference.formId:
            continue

        component["selectedFormId"] = reference.formId
        if component.get("storeReference") and reference.formDefinition is not None:
            component["referencedFormDefinition"] = copy.deepcopy(reference.formDefinition)
        logger.debug("Collected reference %s -> %s", component.get("key"), reference.formId)


def prepare_for_render(tree: Any) -> None:
    """Make selectors with a stored selection render with it preselected."""
    for component in find_selectors(tree):
        if component.get("selectedFormId"):
            component["defaultValue"] = component["selectedFormId"]
