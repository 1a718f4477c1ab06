from fastapi import APIRouter, Depends, HTTPException

from formselect.database import forms_collection, serialize_form
from formselect.errors import FormConflictError, FormNotFoundError, FormStoreError
from formselect.schemas import FormCreateIn, FormOut, FormUpdateIn, MessageOut
from formselect.store import FormStore

router = APIRouter(prefix="/forms", tags=["forms"])


def get_form_store() -> FormStore:
    return FormStore(forms_collection)


@router.post("", status_code=201, response_model=FormOut)
async def create_form(form: FormCreateIn, store: FormStore = Depends(get_form_store)):
    """Create a new form. Fails with 409 if the formId is already taken."""
    if not form.formId or form.formDefinition is None:
        raise HTTPException(status_code=400, detail="'formId' and 'formDefinition' are required in the request body.")

    try:
        doc = await store.create(form.formId, form.formDefinition, title=form.title)
    except FormConflictError as e:
        raise HTTPException(status_code=409, detail=e.message)
    except FormStoreError as e:
        raise HTTPException(status_code=500, detail=f"{e.message} {e.cause}")
    return serialize_form(doc)


@router.get("", response_model=list[FormOut])
async def list_forms(store: FormStore = Depends(get_form_store)):
    """Get all forms, most recent first."""
    try:
        items = await store.list_all()
    except FormStoreError as e:
        raise HTTPException(status_code=500, detail=f"{e.message} {e.cause}")
    return [serialize_form(item) for item in items]


@router.get("/{form_id}", response_model=FormOut)
async def get_form(form_id: str, store: FormStore = Depends(get_form_store)):
    """Get a form by its storage id or by its formId."""
    try:
        doc = await store.find_by_either_id(form_id)
    except FormNotFoundError:
        raise HTTPException(status_code=404, detail="Form not found")
    except FormStoreError as e:
        raise HTTPException(status_code=500, detail=f"{e.message} {e.cause}")
    return serialize_form(doc)


@router.put("/{form_id}", response_model=FormOut)
async def update_form(form_id: str, form: FormUpdateIn, store: FormStore = Depends(get_form_store)):
    """Replace the definition of a form; identity and createdAt are kept."""
    if form.formDefinition is None:
        raise HTTPException(status_code=400, detail="'formDefinition' is required in the request body.")

    try:
        doc = await store.update(form_id, form.formDefinition)
    except FormNotFoundError:
        raise HTTPException(status_code=404, detail="Form not found")
    except FormStoreError as e:
        raise HTTPException(status_code=500, detail=f"{e.message} {e.cause}")
    return serialize_form(doc)


@router.delete("/{form_id}", response_model=MessageOut)
async def delete_form(form_id: str, store: FormStore = Depends(get_form_store)):
    try:
        doc = await store.delete(form_id)
    except FormNotFoundError:
        raise HTTPException(status_code=404, detail="Form not found")
    except FormStoreError as e:
        raise HTTPException(status_code=500, detail=f"{e.message} {e.cause}")
    return {"message": f"Form '{doc.get('formId')}' deleted successfully."}
