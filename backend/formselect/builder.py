"""
Builder session: saving built forms and loading stored ones.

All state that a page would otherwise keep in globals (the form schema being
built, the live selector widgets, the rendered display form and the status
message) lives on a BuilderContext with an explicit open/close lifecycle.
"""
import copy
import logging
from typing import Any, Callable, Dict, List, Optional

from formselect.client import FormsClient
from formselect.errors import FormsClientError
from formselect.references import collect_references, find_selectors, prepare_for_render, snapshot_selectors
from formselect.widget import FormRenderer, FormSelect, RenderedForm

logger = logging.getLogger(__name__)

MESSAGE_CLASSES = {
    "success": "alert alert-success",
    "danger": "alert alert-danger",
    "warning": "alert alert-warning",
    "info": "alert alert-info",
}


class BuilderContext:
    def __init__(self, client: FormsClient, renderer: Optional[FormRenderer] = None, display_container: str = "formio"):
        self.client = client
        self.renderer = renderer
        self.display_container = display_container

        self.schema: Optional[Dict[str, Any]] = None
        self.selectors: Dict[str, FormSelect] = {}
        self.display_form: Optional[RenderedForm] = None
        self.message: Optional[Dict[str, str]] = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    @property
    def is_open(self) -> bool:
        return self.schema is not None

    def open(self, schema: Optional[Dict[str, Any]] = None) -> "BuilderContext":
        self.schema = schema if schema is not None else {"components": []}
        return self

    def close(self) -> None:
        for selector in self.selectors.values():
            selector.destroy()
        self.selectors.clear()
        self._dispose_display_form()
        self.schema = None

    def register_selector(self, selector: FormSelect) -> FormSelect:
        previous = self.selectors.get(selector.key)
        if previous is not None and previous is not selector:
            previous.destroy()
        self.selectors[selector.key] = selector
        selector.on("error", lambda payload: self.show_message(payload["message"], "danger"))
        return selector

    def create_selector(self, component: Dict[str, Any]) -> FormSelect:
        """Build, register and initialize a selector for a schema component."""
        selector = FormSelect(component, fetch_forms=self.client.list_forms, renderer=self.renderer)
        self.register_selector(selector)
        selector.init()
        return selector

    def show_message(self, message: str, kind: str = "info") -> None:
        self.message = {"text": message, "class": MESSAGE_CLASSES.get(kind, MESSAGE_CLASSES["info"])}
        log = logger.error if kind == "danger" else logger.info
        log(message)

    def clear_message(self) -> None:
        self.message = None

    def save_form_definition(self, prompt_title: Optional[Callable[[], Optional[str]]] = None) -> Optional[Dict[str, Any]]:
        """
        Save the schema being built as a new stored form.

        The title is asked for through ``prompt_title`` when the schema has
        none, and ``formId`` falls back to the title. Selector state is
        written into the schema before it is sent. Returns the stored
        document, or None when saving failed (the reason is in ``message``).
        """
        if not self.is_open:
            self.show_message("Error: the form builder is not initialized", "danger")
            return None

        form_definition = self.schema
        if not form_definition.get("title"):
            form_title = prompt_title() if prompt_title else None
            if not form_title:
                self.show_message("Error: a title is required to save the form", "danger")
                return None
            form_definition["title"] = form_title
            form_definition["formId"] = form_title

        if not form_definition.get("formId"):
            form_definition["formId"] = form_definition["title"]

        references = snapshot_selectors(self.selectors.values())
        collect_references(form_definition.get("components"), references)

        try:
            saved = self.client.create_form(
                form_definition["formId"],
                form_definition,
                title=form_definition["title"],
            )
        except FormsClientError as e:
            self.show_message(f"Error saving the form: {e}", "danger")
            return None

        self.show_message(f'Form "{form_definition["title"]}" saved successfully', "success")
        for selector in self.selectors.values():
            selector.refresh()
        return saved

    def load_form(self, form_id: str) -> Optional[Dict[str, Any]]:
        """Fetch a stored form and render it into the display container."""
        try:
            form_data = self.client.get_form(form_id)
        except FormsClientError as e:
            self.show_message(f"Error loading the form: {e}", "danger")
            return None

        form_definition = form_data.get("formDefinition")
        if not form_definition:
            self.show_message("Error: form definition not found", "danger")
            return None

        form_definition = copy.deepcopy(form_definition)
        prepare_for_render(form_definition.get("components"))

        self._dispose_display_form()
        if self.renderer is not None:
            try:
                self.display_form = self.renderer.render(self.display_container, form_definition)
            except Exception as e:
                logger.exception("Error rendering form %s", form_id)
                self.show_message(f"Error loading the form: {e}", "danger")
                return None
        logger.info("Form loaded successfully: %s", form_data.get("title"))
        return form_definition

    def attach_selectors(self) -> List[FormSelect]:
        """Create a live selector for every selector component in the schema."""
        return [self.create_selector(component) for component in find_selectors(self.schema.get("components"))]

    def _dispose_display_form(self) -> None:
        if self.display_form is not None:
            self.display_form.destroy()
            self.display_form = None
