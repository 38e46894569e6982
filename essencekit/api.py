"""Fetch component data from configured API groups.

Components declare data sources in their ``config.json``::

    {
      "api": [
        {"data_group": "cms", "data_source": "/posts", "get_type": "static",
         "inject_as": "posts"},
        {"data_group": "cms", "data_source": "/comments", "post_type": "json",
         "post_name": "addComment"}
      ]
    }

``get_type`` entries (``static`` or ``dynamic``) are fetched at build time
and merged into the component's render scope under ``inject_as``.
``post_type`` entries produce a client-side POST helper script. The bearer
token comes from the environment variable named by
``api_auth.<group>.token`` in the site config.

Example
-------
>>> from essencekit.api import ApiClient
>>> client = ApiClient({"cms": "https://cms.example"})  # doctest: +SKIP
>>> client.fetch_data("cms", "/posts")  # doctest: +SKIP
[{'title': 'Hello'}]
"""

from __future__ import annotations

import logging
import os
import re
import typing as typ

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .client_scripts import build_post_script
from .errors import ApiError

if typ.TYPE_CHECKING:
    from .compiler.models import ComponentDescriptor
    from .config import SiteConfig

logger = logging.getLogger(__name__)

FETCH_TYPES = ("static", "dynamic")
_NON_WORD = re.compile(r"\W")


def _build_session() -> requests.Session:
    """Return a session that retries transient failures on idempotent calls."""
    session = requests.Session()
    retry = Retry(
        total=5,
        read=5,
        connect=3,
        backoff_factor=0.5,
        status_forcelist=(500, 502, 503, 504),
        allowed_methods=("GET", "HEAD"),
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


class ApiClient:
    """Thin JSON client over the site's configured API groups."""

    def __init__(
        self,
        api_groups: typ.Mapping[str, str],
        *,
        session: requests.Session | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.api_groups = dict(api_groups)
        self._session = session
        self.timeout = timeout

    @property
    def session(self) -> requests.Session:
        """Return the HTTP session, creating a retrying one on first use."""
        if self._session is None:
            self._session = _build_session()
        return self._session

    def close(self) -> None:
        """Close the underlying session if this client opened one."""
        if self._session is not None:
            self._session.close()
            self._session = None

    def fetch_data(self, group: str, endpoint: str) -> typ.Any:
        """Return the decoded JSON body of ``GET <group base><endpoint>``.

        Raises
        ------
        ApiError
            If ``group`` is not configured, the request fails, the server
            answers with an error status, or the body is not JSON.
        """
        base = self.api_groups.get(group)
        if not base:
            msg = f'API group "{group}" not found in site config'
            raise ApiError(msg)

        url = f"{base}{endpoint}"
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            msg = f"Fetch failed for {url}: {exc}"
            raise ApiError(msg) from exc
        try:
            return response.json()
        except ValueError as exc:
            msg = f"Response from {url} was not valid JSON"
            raise ApiError(msg) from exc


class ApiDataLoader:
    """Populate descriptors with fetched data and client POST helpers."""

    def __init__(
        self, site_config: SiteConfig, client: ApiClient | None = None
    ) -> None:
        self.site_config = site_config
        self._owns_client = client is None
        self.client = client or ApiClient(site_config.api_groups)

    def close(self) -> None:
        """Close the API client if this loader created it."""
        if self._owns_client:
            self.client.close()

    def populate(self, descriptor: ComponentDescriptor) -> None:
        """Fill ``fetched_data`` and ``client_scripts`` for ``descriptor``.

        Never raises: failed fetches are logged and the remaining entries are
        still processed, leaving the data partially populated.
        """
        entries = descriptor.config.get("api")
        if not isinstance(entries, list):
            return
        descriptor.client_scripts = []
        for entry in entries:
            if not isinstance(entry, dict):
                logger.warning("Ignoring malformed api entry in %s.", descriptor.name)
                continue
            source = str(_entry_value(entry, "data_source") or "")
            group = str(_entry_value(entry, "data_group") or "")
            if _entry_value(entry, "get_type") in FETCH_TYPES:
                self._fetch_into(descriptor, entry, group, source)
            if _entry_value(entry, "post_type"):
                descriptor.client_scripts.append(
                    self._post_script(entry, group, source)
                )

    def _fetch_into(
        self,
        descriptor: ComponentDescriptor,
        entry: typ.Mapping[str, typ.Any],
        group: str,
        source: str,
    ) -> None:
        try:
            result = self.client.fetch_data(group, source)
        except ApiError as exc:
            logger.error("API fetch failed for %s: %s", source, exc)
            return
        key = _entry_value(entry, "inject_as") or _NON_WORD.sub("", source)
        descriptor.fetched_data[key] = result

    def _post_script(
        self, entry: typ.Mapping[str, typ.Any], group: str, source: str
    ) -> str:
        auth = self.site_config.api_auth.get(group) or {}
        token_var = auth.get("token") if isinstance(auth, dict) else None
        token = os.getenv(token_var, "") if token_var else ""
        name = _entry_value(entry, "post_name") or f"postTo{_NON_WORD.sub('', source)}"
        base_url = self.site_config.api_groups.get(group, "")
        return build_post_script(name, base_url, source, token)


def _entry_value(entry: typ.Mapping[str, typ.Any], key: str) -> typ.Any:
    """Read ``key`` from an api entry, accepting its camelCase spelling too."""
    if key in entry:
        return entry[key]
    head, *rest = key.split("_")
    return entry.get(head + "".join(part.title() for part in rest))


__all__ = ["FETCH_TYPES", "ApiClient", "ApiDataLoader"]
