"""Microsoft Graph file-store client for SharePoint/OneDrive drives."""
from typing import Callable, List, Optional
from urllib.parse import quote

import requests

from .models import DriveItem
from cetieflow.utils.exceptions import HttpError, NetworkError
from cetieflow.utils.logger import get_logger

logger = get_logger()

GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"


class GraphClient:
    """Thin wrapper over the drive endpoints used by the application.

    Every call is a single blocking round trip. Transport failures surface as
    ``NetworkError`` and non-2xx answers as ``HttpError``; nothing is retried.
    """

    def __init__(
        self,
        token_provider: Callable[[], str],
        base_url: str = GRAPH_BASE_URL,
        timeout: float = 60,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize Graph client.

        Args:
            token_provider: Callable returning a bearer token
            base_url: Graph API root, without trailing slash
            timeout: Per-request timeout in seconds
            session: Optional preconfigured requests session
        """
        self.token_provider = token_provider
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    # -- sites and drives ---------------------------------------------------

    def get_site(self, site_path: str) -> dict:
        """Resolve a site by its canonical ``host:/path`` form."""
        return self._request("GET", f"{self.base_url}/sites/{site_path}").json()

    def list_drives(self, site_id: str) -> List[dict]:
        response = self._request("GET", f"{self.base_url}/sites/{site_id}/drives")
        return response.json().get("value", [])

    # -- listing ------------------------------------------------------------

    def list_children(self, drive_id: str, item_id: str) -> List[DriveItem]:
        """List the direct children of a folder by id."""
        return self._list(f"{self.base_url}/drives/{drive_id}/items/{item_id}/children")

    def list_children_by_path(self, drive_id: str, path: str) -> List[DriveItem]:
        """List the direct children of a folder addressed from the drive root."""
        encoded = quote(path.strip("/"))
        return self._list(f"{self.base_url}/drives/{drive_id}/root:/{encoded}:/children")

    def _list(self, url: str) -> List[DriveItem]:
        items: List[DriveItem] = []
        while url:
            payload = self._request("GET", url).json()
            items.extend(DriveItem.from_json(item) for item in payload.get("value", []))
            url = payload.get("@odata.nextLink")
        return items

    # -- content ------------------------------------------------------------

    def download(self, drive_id: str, item_id: str, convert_to: Optional[str] = None) -> bytes:
        """
        Download item content.

        Args:
            drive_id: Drive ID
            item_id: Item ID
            convert_to: Optional store-side conversion format (e.g. "pdf")

        Returns:
            Raw bytes
        """
        params = {"format": convert_to} if convert_to else None
        response = self._request(
            "GET",
            f"{self.base_url}/drives/{drive_id}/items/{item_id}/content",
            params=params
        )
        return response.content

    def upload(
        self,
        drive_id: str,
        parent_id: str,
        name: str,
        content: bytes,
        content_type: str = "application/octet-stream"
    ) -> DriveItem:
        """Create or replace ``<parent>/<name>`` with the given bytes."""
        url = f"{self.base_url}/drives/{drive_id}/items/{parent_id}:/{quote(name, safe='')}:/content"
        response = self._request("PUT", url, data=content, headers={"Content-Type": content_type})
        return DriveItem.from_json(response.json())

    # -- item mutations -----------------------------------------------------

    def delete(self, drive_id: str, item_id: str) -> None:
        self._request("DELETE", f"{self.base_url}/drives/{drive_id}/items/{item_id}")

    def move(self, drive_id: str, item_id: str, parent_path: str) -> DriveItem:
        """Move an item under the folder at ``parent_path`` via a parent-reference update."""
        response = self._request(
            "PATCH",
            f"{self.base_url}/drives/{drive_id}/items/{item_id}",
            json={"parentReference": {"path": parent_path}}
        )
        return DriveItem.from_json(response.json())

    def copy(self, drive_id: str, item_id: str, parent_id: str, name: str) -> Optional[str]:
        """
        Start an asynchronous copy.

        Returns:
            The monitor URL when the store answered "accepted", else None
        """
        response = self._request(
            "POST",
            f"{self.base_url}/drives/{drive_id}/items/{item_id}/copy",
            json={"parentReference": {"id": parent_id}, "name": name}
        )
        return response.headers.get("Location")

    def create_link(self, drive_id: str, item_id: str, link_type: str = "edit") -> str:
        """Create a sharing link and return its web URL."""
        response = self._request(
            "POST",
            f"{self.base_url}/drives/{drive_id}/items/{item_id}/createLink",
            json={"type": link_type}
        )
        return response.json()["link"]["webUrl"]

    def create_empty_file(self, drive_id: str, parent_id: str, name: str) -> DriveItem:
        response = self._request(
            "POST",
            f"{self.base_url}/drives/{drive_id}/items/{parent_id}/children",
            json={"name": name, "file": {}}
        )
        return DriveItem.from_json(response.json())

    # -- transport ----------------------------------------------------------

    def _request(self, method: str, url: str, headers: Optional[dict] = None, **kwargs) -> requests.Response:
        all_headers = {"Authorization": f"Bearer {self.token_provider()}"}
        if headers:
            all_headers.update(headers)

        logger.debug(f"{method} {url}")
        try:
            response = self.session.request(method, url, headers=all_headers, timeout=self.timeout, **kwargs)
        except (requests.ConnectionError, requests.Timeout) as e:
            logger.error(f"Network error on {method} {url}: {e}")
            raise NetworkError(f"Network error: {e}")

        if not response.ok:
            logger.error(f"{method} {url} failed: HTTP {response.status_code} {response.text[:200]}")
            raise HttpError(f"{method} failed", response.status_code, response.text)
        return response
