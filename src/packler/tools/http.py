from __future__ import annotations

import os
from pathlib import Path

import httpx
from tenacity import RetryError, Retrying, retry_if_exception_type, stop_after_attempt

from packler import __version__
from packler.core import ExternalToolError, get_logger
from packler.core.retry import DeterministicExponentialBackoff

_RETRYABLE_STATUSES: set[int] = {408, 429, 500, 502, 503, 504}

log = get_logger(__name__)


class RetryableHttpStatus(Exception):
    def __init__(self, *, url: str, status_code: int) -> None:
        super().__init__(f"HTTP {status_code} for GET {url}")
        self.url = url
        self.status_code = status_code


def make_http_client(
    *,
    timeout: httpx.Timeout | None = None,
    transport: httpx.BaseTransport | None = None,
) -> httpx.Client:
    t = timeout or httpx.Timeout(connect=5.0, read=60.0, write=30.0, pool=5.0)
    return httpx.Client(
        timeout=t,
        follow_redirects=True,
        headers={"User-Agent": f"packler/{__version__}"},
        transport=transport,
    )


def is_retryable_status(code: int) -> bool:
    return code in _RETRYABLE_STATUSES


def _retrying(*, url: str, max_attempts: int, base: float, cap: float) -> Retrying:
    def _before_sleep(retry_state) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        sleep = retry_state.next_action.sleep if retry_state.next_action else None
        log.warning(
            "http.retry",
            url=url,
            attempt=retry_state.attempt_number,
            sleep_s=sleep,
            error=repr(exc) if exc else None,
        )

    return Retrying(
        stop=stop_after_attempt(max_attempts),
        wait=DeterministicExponentialBackoff(base=base, cap=cap),
        retry=retry_if_exception_type(
            (httpx.TimeoutException, httpx.TransportError, RetryableHttpStatus)
        ),
        reraise=False,
        before_sleep=_before_sleep,
    )


def download_to_file(
    client: httpx.Client,
    *,
    url: str,
    dest_path: os.PathLike[str] | str,
    max_attempts: int = 3,
    chunk_bytes: int = 1024 * 128,
    backoff_base: float = 0.5,
    backoff_cap: float = 4.0,
) -> int:
    """
    Stream GET `url` into `dest_path`. Returns the number of bytes written.
    Transport errors and 5xx/429 are retried; anything else is final.
    """
    dest = Path(dest_path)

    def _do() -> int:
        dest.unlink(missing_ok=True)
        with client.stream("GET", url) as resp:
            if resp.status_code != 200:
                if is_retryable_status(resp.status_code):
                    raise RetryableHttpStatus(url=url, status_code=resp.status_code)
                raise ExternalToolError(f"HTTP {resp.status_code} for GET {url}")

            dest.parent.mkdir(parents=True, exist_ok=True)
            total = 0
            with dest.open("wb") as f:
                for chunk in resp.iter_bytes(chunk_size=chunk_bytes):
                    f.write(chunk)
                    total += len(chunk)
            return total

    retrying = _retrying(
        url=url, max_attempts=max_attempts, base=backoff_base, cap=backoff_cap
    )
    try:
        for attempt in retrying:
            with attempt:
                return _do()
    except RetryError as re:
        last = re.last_attempt.exception()
        dest.unlink(missing_ok=True)
        raise ExternalToolError(
            f"Download failed for {url} "
            f"(attempts={re.last_attempt.attempt_number}): {last}"
        ) from last
    except ExternalToolError:
        dest.unlink(missing_ok=True)
        raise
    except OSError as e:
        dest.unlink(missing_ok=True)
        raise ExternalToolError(f"Could not write download of {url}: {e}") from e

    raise RuntimeError("unreachable")
