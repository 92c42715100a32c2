from typing import Any, Dict, Optional
from urllib.parse import quote

import requests

from settings import GorgiasSettings


class GorgiasError(Exception):
    pass


class GorgiasClient:
    """Minimal client for the Gorgias helpdesk REST API."""

    def __init__(self, settings: GorgiasSettings, session: Optional[requests.Session] = None, timeout: float = 10):
        self.settings = settings
        self.session = session or requests.Session()
        self.timeout = timeout

    def list_ticket_custom_fields(self, ticket_id: str) -> Dict[str, Any]:
        url = f"{self.settings.base_url.rstrip('/')}/api/tickets/{quote(str(ticket_id), safe='')}/custom-fields"
        try:
            resp = self.session.get(
                url,
                auth=(self.settings.username, self.settings.api_key),
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            return resp.json()
        except requests.RequestException as exc:
            raise GorgiasError(f"Request to {url} failed: {exc}") from exc
        except ValueError as exc:
            raise GorgiasError(f"Non-JSON response from {url}") from exc
