"""HTTP transport for the Lambda Cloud API, built on requests."""

from __future__ import annotations

import logging
import threading

import requests

from instance_plane.core.errors import APIError, Cancelled, DecodeError, TransportError

logger = logging.getLogger(__name__)

CANCEL_POLL_INTERVAL = 0.05


class HTTPTransport:
    """Sends authenticated JSON requests to one Lambda Cloud endpoint.

    Each transport owns its credential, so several can coexist in one process.
    Only HTTP 200 counts as success; 201 and 202 are errors like any other.
    """

    def __init__(self, config: dict, session: requests.Session | None = None):
        self._endpoint = config["endpoint"].rstrip("/")
        self._default_timeout = config.get("timeout")
        self._session = session or requests.Session()
        self._headers = {
            "Authorization": f"Bearer {config['api_key']}",
            "Accept": "application/json",
            "Content-Type": "application/json",
        }

    def __enter__(self) -> HTTPTransport:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._session.close()

    def send(
        self,
        method: str,
        path: str,
        body: dict | None = None,
        *,
        timeout: float | None = None,
        cancel: threading.Event | None = None,
        expect_body: bool = True,
    ) -> tuple[int, dict | None]:
        """Issue one request and return (status_code, decoded_body).

        ``timeout`` bounds connect and each socket read; hitting it aborts the
        request and raises Cancelled. A ``cancel`` event aborts the call with
        Cancelled whether it is set before the request goes out or while it
        is in flight. With ``expect_body=False`` the body is not decoded.
        """
        if cancel is not None and cancel.is_set():
            raise Cancelled(f"{method} {path} cancelled before it was sent")

        url = f"{self._endpoint}{path}"
        effective_timeout = timeout if timeout is not None else self._default_timeout
        logger.debug("%s %s", method, url)

        if cancel is None:
            return self._perform(method, path, url, body, effective_timeout, expect_body)
        return self._perform_cancellable(method, path, url, body, effective_timeout, expect_body, cancel)

    def _perform_cancellable(
        self,
        method: str,
        path: str,
        url: str,
        body: dict | None,
        timeout: float | None,
        expect_body: bool,
        cancel: threading.Event,
    ) -> tuple[int, dict | None]:
        # The request runs on a worker so the caller can walk away from it.
        # An abandoned worker still releases its response when it finishes.
        outcome: dict = {}
        done = threading.Event()

        def run():
            try:
                outcome["result"] = self._perform(method, path, url, body, timeout, expect_body)
            except Exception as exc:
                outcome["error"] = exc
            finally:
                done.set()

        threading.Thread(target=run, name=f"lambda-{method.lower()}", daemon=True).start()

        while not done.wait(CANCEL_POLL_INTERVAL):
            if cancel.is_set():
                logger.debug("%s %s cancelled in flight", method, path)
                raise Cancelled(f"{method} {path} cancelled while in flight")

        if "error" in outcome:
            raise outcome["error"]
        return outcome["result"]

    def _perform(
        self,
        method: str,
        path: str,
        url: str,
        body: dict | None,
        timeout: float | None,
        expect_body: bool,
    ) -> tuple[int, dict | None]:
        try:
            with self._session.request(
                method,
                url,
                json=body,
                headers=self._headers,
                timeout=timeout,
            ) as response:
                return self._handle_response(method, path, response, expect_body)
        except requests.Timeout as exc:
            raise Cancelled(f"{method} {path} timed out after {timeout}s") from exc
        except requests.RequestException as exc:
            raise TransportError(f"{method} {path} failed: {exc}") from exc

    def _handle_response(
        self,
        method: str,
        path: str,
        response: requests.Response,
        expect_body: bool,
    ) -> tuple[int, dict | None]:
        status = response.status_code
        if status != requests.codes.ok:
            logger.warning("%s %s returned status %s", method, path, status)
            raise APIError(status, f"{method} {path} returned status {status}")

        if not expect_body:
            return status, None

        try:
            decoded = response.json()
        except ValueError as exc:
            raise DecodeError(f"Unable to parse response from {method} {path}: {exc}") from exc
        return status, decoded
