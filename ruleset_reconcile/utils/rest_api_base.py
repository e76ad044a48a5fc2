import logging
from typing import Any, Self
from urllib.parse import urljoin

import requests
from urllib3 import Retry


class PaginationError(requests.exceptions.HTTPError):
    """A page after the first one of a paginated listing could not be fetched."""


class TokenAuth(requests.auth.AuthBase):
    """Use this class to add a GitHub style token to the request headers."""

    def __init__(self, token: str):
        self.token = token

    def __call__(self, r: requests.PreparedRequest) -> requests.PreparedRequest:
        r.headers["Authorization"] = f"Bearer {self.token}"
        return r


class ApiBase:
    """This class provides a common standard for REST API clients."""

    def __init__(
        self,
        host: str,
        auth: requests.auth.AuthBase | None = None,
        max_retries: int | Retry | None = None,
        read_timeout: float | None = None,
        session: requests.Session | None = None,
    ) -> None:
        # urljoin drops the last path segment of hosts without a trailing slash
        self.host = host if host.endswith("/") else f"{host}/"
        self.max_retries = max_retries if max_retries is not None else 0
        self.read_timeout = read_timeout if read_timeout is not None else 30
        self.session = session or requests.Session()
        if auth:
            self.session.auth = auth
        for prefix in ["http://", "https://"]:
            self.session.mount(
                prefix,
                requests.adapters.HTTPAdapter(max_retries=self.max_retries),
            )
        self.session.headers.update({
            "Content-Type": "application/json",
        })

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.cleanup()

    def cleanup(self) -> None:
        self.session.close()

    def _url(self, url: str) -> str:
        return urljoin(self.host, url.lstrip("/"))

    def _get(self, url: str) -> dict[str, Any]:
        response = self.session.get(self._url(url), timeout=self.read_timeout)
        response.raise_for_status()
        try:
            return response.json()
        except requests.exceptions.JSONDecodeError:
            logging.error(
                f"Failed to decode JSON response from {url}. "
                f"Response: {response.text}"
            )
            raise

    def _list(self, url: str, params: dict | None = None) -> list[dict[str, Any]]:
        response = self.session.get(
            self._url(url), params=params, timeout=self.read_timeout
        )
        response.raise_for_status()
        results = response.json()
        # handle pagination
        while next_url := response.links.get("next", {}).get("url"):
            response = self.session.get(next_url, timeout=self.read_timeout)
            try:
                response.raise_for_status()
            except requests.exceptions.HTTPError as e:
                raise PaginationError(str(e), response=e.response) from e
            results += response.json()
        return results

    def _post(self, url: str, data: dict | bytes | None = None) -> dict[str, Any]:
        if data is None or isinstance(data, dict):
            response = self.session.post(
                self._url(url), json=data, timeout=self.read_timeout
            )
        else:
            response = self.session.post(
                self._url(url), data=data, timeout=self.read_timeout
            )
        response.raise_for_status()
        if response.status_code == 204 or not response.text:
            return {}
        return response.json()

    def _delete(self, url: str) -> None:
        response = self.session.delete(self._url(url), timeout=self.read_timeout)
        response.raise_for_status()
