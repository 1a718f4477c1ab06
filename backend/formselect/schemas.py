from pydantic import BaseModel, ConfigDict
from typing import Any, Dict, Optional
from datetime import datetime


SELECTOR_TYPE = "formselect"
DEFAULT_DATA_URL = "http://localhost:3000/forms"


class FormCreateIn(BaseModel):
    # Both are checked in the router so a missing one is reported as 400
    formId: Optional[str] = None
    title: Optional[str] = None
    formDefinition: Optional[Dict[str, Any]] = None


class FormUpdateIn(BaseModel):
    formDefinition: Optional[Dict[str, Any]] = None


class FormOut(BaseModel):
    id: str
    formId: str
    title: Optional[str] = None
    formDefinition: Dict[str, Any]
    createdAt: datetime


class MessageOut(BaseModel):
    message: str


class FormReference(BaseModel):
    """What a selector persists about the form it embeds."""
    formId: str
    formDefinition: Optional[Dict[str, Any]] = None


class FormSelectSettings(BaseModel):
    """Author-time options of a form select component."""
    model_config = ConfigDict(extra="allow")

    type: str = SELECTOR_TYPE
    label: str = "Form Select"
    key: str = "formselect"
    input: bool = True
    placeholder: str = "Select a form"
    dataUrl: str = DEFAULT_DATA_URL
    valueProperty: str = "formId"
    searchField: str = "formId"
    formContainer: str = "formio"
    selectedFormId: str = ""
    storeReference: bool = True
    defaultValue: Optional[str] = None
