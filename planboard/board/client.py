"""HTTP board gateway: the BoardController interface over /api/planning.

Authenticates with a Bearer API token. Error responses are turned back into
the planning error taxonomy (see planboard.errors.error_for_status), and
network failures (timeouts, refused connections) become PersistenceError.
"""

import logging

import requests

from planboard.errors import NotFound, PersistenceError, error_for_status

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10  # seconds


class ApiGateway:
    def __init__(self, base_url, token, timeout=DEFAULT_TIMEOUT, session=None):
        self.base_url = base_url.rstrip("/") + "/api/planning"
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        })

    def _request(self, method, path, json=None, params=None):
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.request(
                method, url, json=json, params=params, timeout=self.timeout
            )
        except requests.Timeout as e:
            logger.warning(f"{method} {url} timed out")
            raise PersistenceError("The planning service timed out.") from e
        except requests.RequestException as e:
            logger.warning(f"{method} {url} failed: {e}")
            raise PersistenceError("Could not reach the planning service.") from e

        if resp.status_code >= 400:
            try:
                body = resp.json()
            except ValueError:
                body = {}
            if not isinstance(body, dict):
                body = {}
            raise error_for_status(
                resp.status_code,
                body.get("message") or f"HTTP {resp.status_code}",
                code=body.get("error"),
            )
        return resp.json()

    # ─── Workflow ────────────────────────────────────────────────

    def get_workflow(self):
        try:
            return self._request("GET", "/workflow")
        except NotFound as e:
            if e.code == "workflow_not_configured":
                return None
            raise

    def create_workflow(self, columns=None, preset=None):
        body = {"preset": preset} if preset is not None else {"columns": columns}
        return self._request("POST", "/workflow", json=body)

    def append_column(self, name, expected_revision=None):
        body = {"name": name}
        if expected_revision is not None:
            body["expected_revision"] = expected_revision
        return self._request("POST", "/workflow/columns", json=body)["workflow"]

    # ─── Cards ───────────────────────────────────────────────────

    def list_cards(self):
        return self._request("GET", "/cards")

    def create_card(self, **fields):
        return self._request("POST", "/cards", json=fields)

    def update_card(self, card_id, changes, expected_revision=None):
        body = dict(changes)
        if expected_revision is not None:
            body["expected_revision"] = expected_revision
        return self._request("PATCH", f"/cards/{card_id}", json=body)

    def move_card(self, card_id, column_id, order, expected_revision=None):
        body = {"column_id": column_id, "order": order}
        if expected_revision is not None:
            body["expected_revision"] = expected_revision
        return self._request("PUT", f"/cards/{card_id}/move", json=body)

    def toggle_checked(self, card_id):
        return self._request("POST", f"/cards/{card_id}/toggle")

    def delete_card(self, card_id):
        self._request("DELETE", f"/cards/{card_id}", params={"confirm": "true"})

    # ─── Lookups ─────────────────────────────────────────────────

    def list_ideas(self):
        return self._request("GET", "/ideas")

    def list_series(self):
        return self._request("GET", "/series")

    def idea_prefill(self, idea_id):
        return self._request("GET", f"/ideas/{idea_id}/prefill")
