import logging
from typing import Any
from urllib.parse import quote

import requests

from ..config import Config
from ..errors import ApiError, RemoteUnavailableError
from ..validators import validate_record_id

logger = logging.getLogger(__name__)


class ProjectApiClient:
    """Thin JSON client for the project-timeline REST API.

    Endpoints (relative to ``config.api_url``):
        GET    /data            -> {"projects": [...], "settings": {...}}
        POST   /projects        create one project
        PUT    /projects/{id}   replace one project
        DELETE /projects/{id}   delete one project
    """

    def __init__(self, config: Config, session: requests.Session | None = None):
        self.config = config
        self.base_url = config.api_url.rstrip("/")
        self.session = session or self._create_session()

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.verify = not self.config.insecure
        session.headers.update({"Accept": "application/json"})
        return session

    @property
    def timeout(self) -> tuple[float, float]:
        return (self.config.connect_timeout, self.config.read_timeout)

    def _project_url(self, record_id: Any) -> str:
        is_valid, reason = validate_record_id(record_id)
        if not is_valid:
            raise ValueError(reason)
        return f"{self.base_url}/projects/{quote(str(record_id), safe='')}"

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        """
        Extract the server's error text, falling back to the HTTP reason.
        """
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("error"):
            return str(body["error"])
        text = (response.text or "").strip()
        return text[:200] if text else (response.reason or "request failed")

    def _send(self, method: str, url: str, payload: Any = None) -> requests.Response:
        """
        Send one write request; raise ApiError unless the server accepts it.
        """
        try:
            response = self.session.request(
                method,
                url,
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise ApiError(f"{method} {url} failed: {exc}") from exc

        if not response.ok:
            raise ApiError(self._error_message(response), status_code=response.status_code)
        return response

    def get_data(self) -> dict[str, Any]:
        """
        Fetch the whole collection in one request.

        Raises:
            RemoteUnavailableError: On connection errors, timeouts, non-2xx
                responses or a body that is not a JSON object.
        """
        url = f"{self.base_url}/data"
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.HTTPError as exc:
            raise RemoteUnavailableError(
                f"Failed to fetch production data: {exc.response.status_code}"
            ) from exc
        except requests.RequestException as exc:
            raise RemoteUnavailableError(f"Failed to fetch production data: {exc}") from exc
        except ValueError as exc:
            raise RemoteUnavailableError(
                f"Production data from {url} is not valid JSON: {exc}"
            ) from exc

        if not isinstance(data, dict):
            raise RemoteUnavailableError(
                f"Production data from {url} is not a JSON object"
            )
        return data

    def create_project(self, record: dict[str, Any]) -> None:
        """
        Create a project.  The record carries its own ``id``.
        """
        self._send("POST", f"{self.base_url}/projects", record)

    def update_project(self, record_id: Any, record: dict[str, Any]) -> None:
        """
        Replace the full project stored under ``record_id``.
        """
        self._send("PUT", self._project_url(record_id), record)

    def delete_project(self, record_id: Any) -> None:
        """
        Delete a project.  A 404 means the record is already gone and is
        accepted, matching the server's own handling of unknown ids.
        """
        try:
            self._send("DELETE", self._project_url(record_id))
        except ApiError as exc:
            if exc.status_code == 404:
                logger.warning("Project %s already absent on server", record_id)
                return
            raise
