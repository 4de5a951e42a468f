"""
Minimal JSON-over-HTTP helpers and the ``fetch_json`` work item.

Requests are plain ``urllib.request`` calls. Inside a work item they run in
the event loop's default executor so the loop is never blocked.
"""

from __future__ import annotations

import asyncio
import json
import urllib.error
import urllib.request
from collections.abc import Callable
from typing import Any

from seqrun.core.errors import FetchError
from seqrun.core.logging import get_logger
from seqrun.core.settings import get_settings
from seqrun.execution.runner import Continuation, WorkItem

logger = get_logger(__name__)


def request_json(
    url: str,
    *,
    data: bytes | None = None,
    headers: dict[str, str] | None = None,
    timeout: float | None = None,
) -> Any:
    """Perform a GET (or POST when *data* is given) and decode a JSON body.

    Raises:
        FetchError: Transport failure, HTTP status >= 400, or a body that
            is not JSON.
    """
    settings = get_settings()
    all_headers = {"Accept": "application/json", "User-Agent": settings.user_agent}
    all_headers.update(headers or {})

    req = urllib.request.Request(url, data=data, headers=all_headers)
    try:
        with urllib.request.urlopen(req, timeout=timeout or settings.http_timeout) as response:
            status = getattr(response, "status", 200)
            body = response.read()
    except urllib.error.HTTPError as e:
        raise FetchError(
            f"Failed to fetch from {url} with status: {e.code}",
            url=url,
            http_status=e.code,
            cause=e,
        ) from e
    except urllib.error.URLError as e:
        raise FetchError(f"Failed to reach {url}: {e.reason}", url=url, cause=e) from e
    except TimeoutError as e:
        raise FetchError(f"Timed out fetching {url}", url=url, cause=e) from e

    if status >= 400:
        raise FetchError(
            f"Failed to fetch from {url} with status: {status}",
            url=url,
            http_status=status,
        )

    try:
        return json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise FetchError(f"Response from {url} is not JSON", url=url, http_status=status, cause=e) from e


def fetch_json(
    url: str,
    on_data: Callable[[Any], Any] | None = None,
    *,
    timeout: float | None = None,
) -> WorkItem:
    """Work item that GETs *url*, hands the decoded JSON to *on_data*, then continues.

    A failed request (or an exception from *on_data*) is reported through
    the continuation as a :class:`FetchError`.

    Example:
        >>> runner.run([
        ...     fetch_json("https://jsonplaceholder.typicode.com/posts/1", print),
        ...     fetch_json("https://jsonplaceholder.typicode.com/posts/2", print),
        ... ], on_complete=lambda: print("done"))
    """

    def work_item(done: Continuation) -> None:
        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(None, lambda: request_json(url, timeout=timeout))

        def _finished(fut: asyncio.Future[Any]) -> None:
            if fut.cancelled():
                done(FetchError(f"Fetch of {url} was cancelled", url=url))
                return
            error = fut.exception()
            if error is not None:
                logger.warning("http.fetch_failed", url=url, error=str(error))
                done(error)
                return
            logger.debug("http.fetched", url=url)
            if on_data is not None:
                try:
                    on_data(fut.result())
                except Exception as exc:
                    done(FetchError(f"on_data failed for {url}: {exc}", url=url, cause=exc))
                    return
            done()

        future.add_done_callback(_finished)

    work_item.__name__ = f"fetch_json[{url}]"
    return work_item
