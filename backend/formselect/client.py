import logging
from typing import Any, Dict, List, Optional

import requests

from formselect.errors import FormsClientError

logger = logging.getLogger(__name__)

BACKEND_URL = "http://localhost:3000"


class FormsClient:
    """Thin requests wrapper around the /forms endpoints. No retries."""

    def __init__(self, base_url: str = BACKEND_URL, session: Optional[requests.Session] = None, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def form_url(self, form_id: str) -> str:
        return f"{self.forms_url}/{requests.utils.quote(form_id, safe='')}"

    @property
    def forms_url(self) -> str:
        return f"{self.base_url}/forms"

    def list_forms(self) -> List[Dict[str, Any]]:
        forms = self._request("GET", self.forms_url)
        if not isinstance(forms, list):
            raise FormsClientError(f"GET {self.forms_url} did not return a list of forms")
        return forms

    def get_form(self, form_id: str) -> Dict[str, Any]:
        return self._request("GET", self.form_url(form_id))

    def create_form(self, form_id: str, form_definition: Dict[str, Any], title: Optional[str] = None) -> Dict[str, Any]:
        payload = {"formId": form_id, "formDefinition": form_definition}
        if title:
            payload["title"] = title
        return self._request("POST", self.forms_url, json=payload)

    def update_form(self, form_id: str, form_definition: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("PUT", self.form_url(form_id), json={"formDefinition": form_definition})

    def delete_form(self, form_id: str) -> Dict[str, Any]:
        return self._request("DELETE", self.form_url(form_id))

    def _request(self, method: str, url: str, **kwargs) -> Any:
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise FormsClientError(f"{method} {url} failed: {e}") from e

        if not response.ok:
            raise FormsClientError(
                f"{method} {url} failed: {response.status_code} {response.reason}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except requests.JSONDecodeError as e:
            raise FormsClientError(f"{method} {url} returned invalid JSON: {e}") from e


def fetch_candidates(data_url: str, session: Optional[requests.Session] = None, timeout: float = 10.0) -> List[Dict[str, Any]]:
    """GET a selector's dataUrl and return the candidate forms it lists."""
    session = session or requests.Session()
    try:
        response = session.get(data_url, timeout=timeout)
    except requests.RequestException as e:
        raise FormsClientError(f"GET {data_url} failed: {e}") from e
    if not response.ok:
        raise FormsClientError(f"GET {data_url} failed: {response.status_code} {response.reason}", status_code=response.status_code)

    try:
        data = response.json()
    except requests.JSONDecodeError as e:
        raise FormsClientError(f"GET {data_url} returned invalid JSON: {e}") from e
    if not isinstance(data, list):
        raise FormsClientError(f"GET {data_url} did not return a list of forms")
    return data
