"""
Form select widget.

A selector component that lists the stored forms, lets the user pick one and
embeds the picked form through a renderer. The widget does not inherit from
any rendering engine class; the engine is reached only through two
collaborators passed in at construction:

* ``fetch_forms()`` returns the candidate list (defaults to a GET on the
  component's ``dataUrl``).
* ``renderer.render(container, definition)`` embeds a form and returns a
  handle with a ``destroy()`` method.

State machine::

    EMPTY --init/refresh ok--> LOADED --select ok--> RESOLVED
                                  ^                     |
                                  +------- reset -------+
"""
import copy
import logging
from collections import defaultdict
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Protocol, Union

from formselect.client import fetch_candidates
from formselect.errors import FormsClientError
from formselect.schemas import SELECTOR_TYPE, DEFAULT_DATA_URL, FormReference, FormSelectSettings

logger = logging.getLogger(__name__)


class RenderedForm(Protocol):
    def destroy(self) -> None: ...


class FormRenderer(Protocol):
    def render(self, container: str, definition: Dict[str, Any]) -> RenderedForm: ...


class SelectorState(str, Enum):
    EMPTY = "empty"
    LOADED = "loaded"
    RESOLVED = "resolved"


class FormSelect:
    def __init__(
        self,
        component: Union[Dict[str, Any], FormSelectSettings, None] = None,
        fetch_forms: Optional[Callable[[], List[Dict[str, Any]]]] = None,
        renderer: Optional[FormRenderer] = None,
    ):
        if isinstance(component, FormSelectSettings):
            self.settings = component
        else:
            self.settings = FormSelectSettings.model_validate(component or {})
        self.fetch_forms = fetch_forms or (lambda: fetch_candidates(self.settings.dataUrl))
        self.renderer = renderer

        self.state = SelectorState.EMPTY
        self.forms: List[Dict[str, Any]] = []
        self.form_instance: Optional[RenderedForm] = None
        self.selected_form_definition: Optional[Dict[str, Any]] = None
        self.value: str = self.settings.defaultValue or ""
        self._listeners = defaultdict(list)

    @classmethod
    def schema(cls, **extend) -> Dict[str, Any]:
        return FormSelectSettings(**extend).model_dump(exclude_none=True)

    @classmethod
    def builder_info(cls) -> Dict[str, Any]:
        return {
            "title": "Form Select",
            "icon": "list",
            "group": "basic",
            "weight": 0,
            "schema": cls.schema(),
        }

    @classmethod
    def edit_form(cls) -> List[Dict[str, Any]]:
        """Settings panels shown to form authors when configuring the component."""
        return [
            {
                "key": "data",
                "components": [
                    {"type": "textfield", "key": "dataUrl", "label": "Data URL", "input": True,
                     "placeholder": DEFAULT_DATA_URL, "defaultValue": DEFAULT_DATA_URL},
                    {"type": "textfield", "key": "valueProperty", "label": "Value Property", "input": True,
                     "placeholder": "formId", "defaultValue": "formId"},
                    {"type": "textfield", "key": "searchField", "label": "Search Field", "input": True,
                     "placeholder": "formId", "defaultValue": "formId"},
                    {"type": "textfield", "key": "formContainer", "label": "Form Container ID", "input": True,
                     "placeholder": "formio", "defaultValue": "formio",
                     "tooltip": "The ID of the element where the selected form will be rendered"},
                    {"type": "checkbox", "key": "storeReference", "label": "Store Form Reference", "input": True,
                     "defaultValue": True,
                     "tooltip": "Whether to store the full form definition as a reference or just the formId"},
                ],
            },
            {
                "key": "display",
                "components": [
                    {"type": "textfield", "key": "label", "label": "Label", "input": True},
                    {"type": "textfield", "key": "placeholder", "label": "Placeholder", "input": True,
                     "defaultValue": "Select a form"},
                ],
            },
            {"key": "validation", "ignore": False},
        ]

    @property
    def key(self) -> str:
        return self.settings.key

    @property
    def type(self) -> str:
        return SELECTOR_TYPE

    @property
    def selected_form_id(self) -> str:
        return self.settings.selectedFormId

    def on(self, event: str, callback: Callable[[Dict[str, Any]], None]) -> None:
        self._listeners[event].append(callback)

    def emit(self, event: str, payload: Dict[str, Any]) -> None:
        for callback in list(self._listeners[event]):
            callback(payload)

    def init(self) -> SelectorState:
        # A value restored from a saved form counts as a preset selection
        if self.value and not self.settings.selectedFormId:
            self.settings.selectedFormId = self.value
        self.load_forms()
        return self.state

    def load_forms(self) -> bool:
        """Fetch the candidate list; resolves a preset selection once it arrives."""
        try:
            forms = self.fetch_forms()
        except FormsClientError as e:
            logger.error("Error loading forms for %s: %s", self.key, e)
            self._error(f"Error loading forms: {e}")
            return False

        if not isinstance(forms, list) or not all(isinstance(form, dict) for form in forms):
            logger.error("Candidate list for %s is not a list of forms", self.key)
            self._error("Error loading forms: unexpected response")
            return False

        self.forms = list(forms)
        if self.state is SelectorState.EMPTY:
            self.state = SelectorState.LOADED
        logger.debug("Loaded %d candidate forms for %s", len(self.forms), self.key)

        if self.settings.selectedFormId and self.state is not SelectorState.RESOLVED:
            self.select(self.settings.selectedFormId)
        return True

    def refresh(self) -> bool:
        return self.load_forms()

    def options(self) -> List[str]:
        value_property = self.settings.valueProperty
        return [form.get(value_property) for form in self.forms if form.get(value_property)]

    def search(self, text: str) -> List[Dict[str, Any]]:
        """Candidates whose searchField contains ``text`` (case-insensitive)."""
        text = (text or "").lower()
        field = self.settings.searchField
        return [form for form in self.forms if text in str(form.get(field, "")).lower()]

    def find_form(self, form_id: str) -> Optional[Dict[str, Any]]:
        value_property = self.settings.valueProperty
        for form in self.forms:
            if form.get(value_property) == form_id:
                return form
        return None

    def select(self, form_id: str) -> bool:
        """Embed the candidate whose valueProperty equals ``form_id``."""
        if self.state is SelectorState.EMPTY:
            logger.error("Cannot select %s on %s: forms are not loaded", form_id, self.key)
            return False

        selected_form = self.find_form(form_id)
        if selected_form is None:
            logger.error("Form not found with ID: %s", form_id)
            self._error(f"Form not found with ID: {form_id}")
            return False

        form_definition = selected_form.get("formDefinition")
        if not form_definition:
            logger.error("Form definition not found for form with ID: %s", form_id)
            self._error(f"Form definition not found for form with ID: {form_id}")
            return False

        self._dispose_form()
        form_instance = None
        if self.renderer is not None:
            try:
                form_instance = self.renderer.render(self.settings.formContainer, copy.deepcopy(form_definition))
            except Exception as e:
                logger.exception("Error loading form %s", form_id)
                self._error(f"Error loading form: {e}")
                # The previous embed is already gone
                self.settings.selectedFormId = ""
                self.selected_form_definition = None
                self.state = SelectorState.LOADED
                return False

        self.form_instance = form_instance
        self.selected_form_definition = copy.deepcopy(form_definition)
        self.settings.selectedFormId = form_id
        self.value = form_id
        self.state = SelectorState.RESOLVED
        logger.info("Form %s loaded into %s", form_id, self.settings.formContainer)

        self.emit("formLoad", {"form": form_instance, "formId": form_id, "formDefinition": form_definition})
        return True

    def change(self, value: str) -> bool:
        """User picked ``value`` in the select control."""
        previous = self.value
        self.value = value or ""
        self.emit("change", {"key": self.key, "value": self.value})
        if not value:
            return False
        if not self.select(value):
            self.value = previous
            return False
        return True

    def set_value(self, value: str, no_load: bool = False) -> None:
        self.value = value or ""
        if value and not no_load and self.state is not SelectorState.EMPTY:
            self.select(value)

    def reset(self) -> None:
        """Drop the embedded form and go back to the selection control."""
        self._dispose_form()
        self.value = ""
        self.settings.selectedFormId = ""
        self.selected_form_definition = None
        if self.state is SelectorState.RESOLVED:
            self.state = SelectorState.LOADED
        self.emit("reset", {"key": self.key})

    def snapshot(self) -> Optional[FormReference]:
        """Current selection with its definition, regardless of storeReference."""
        if not self.settings.selectedFormId:
            return None
        return FormReference(formId=self.settings.selectedFormId, formDefinition=self.selected_form_definition)

    def get_form_reference(self) -> Optional[FormReference]:
        """What should be persisted for this selector."""
        reference = self.snapshot()
        if reference is not None and not self.settings.storeReference:
            reference.formDefinition = None
        return reference

    def destroy(self) -> None:
        self._dispose_form()
        self._listeners.clear()

    def _dispose_form(self) -> None:
        if self.form_instance is not None:
            self.form_instance.destroy()
            self.form_instance = None

    def _error(self, message: str) -> None:
        self.emit("error", {"key": self.key, "message": message})
