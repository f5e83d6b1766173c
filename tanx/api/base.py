"""
Base HTTP client with error handling.

Blocking requests-based transport with pooled connections and orjson
decoding. The async pipeline in ``private.py`` runs these calls in worker
threads.
"""

import itertools
import time
import orjson  # Fast JSON parser (releases GIL)
import requests
from requests.adapters import HTTPAdapter
from typing import Optional, Any, Dict
from urllib.parse import urljoin
import logging

from ..config import TanxSettings
from ..exceptions import APIError, TimeoutError
from ..metrics import Metrics, get_metrics

logger = logging.getLogger(__name__)


class BaseAPIClient:
    """
    Base HTTP client: one pooled session per exchange host.

    Non-2xx responses raise ``APIError`` with the decoded body attached
    unmodified; nothing is retried here.
    """

    def __init__(
        self,
        base_url: str,
        settings: TanxSettings,
        metrics: Optional[Metrics] = None
    ):
        """
        Initialize base API client.

        Args:
            base_url: API base URL
            settings: Client settings
            metrics: Metrics collector (global instance if None)
        """
        self.base_url = base_url
        self.settings = settings
        self.metrics = metrics or get_metrics(enabled=settings.enable_metrics)

        self.session = requests.Session()

        adapter = HTTPAdapter(
            pool_connections=settings.pool_connections,
            pool_maxsize=settings.pool_maxsize,
            max_retries=0,  # Signed operations must never be replayed by the transport
            pool_block=False
        )
        self.session.mount('https://', adapter)
        self.session.mount('http://', adapter)

        self.session.headers.update({
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Connection": "keep-alive",
        })

        self.timeout = (settings.connect_timeout, settings.request_timeout)

        self._request_ids = itertools.count(1)

    def _make_request(
        self,
        method: str,
        path: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Dict[str, Any]] = None
    ) -> Any:
        """
        Make HTTP request with error handling.

        Args:
            method: HTTP method
            path: Request path
            headers: Additional headers
            params: Query parameters
            json_data: JSON body

        Returns:
            Decoded response JSON

        Raises:
            APIError: On non-2xx status, connection failure or unreadable body
            TimeoutError: On timeout
        """
        url = urljoin(self.base_url, path)

        # Shared by every worker thread
        request_id = f"{method}:{path}:{next(self._request_ids)}"

        request_headers = self.session.headers.copy()
        if headers:
            request_headers.update(headers)

        if params:
            params = {k: v for k, v in params.items() if v is not None}

        if self.settings.log_requests:
            logger.debug(f"[{request_id}] {method} {url} params={params}")

        start = time.time()
        status = "error"
        try:
            response = self.session.request(
                method=method,
                url=url,
                headers=request_headers,
                params=params,
                json=json_data,
                timeout=self.timeout
            )
            status = str(response.status_code)

            if response.status_code >= 400:
                error_msg = f"{method} {path} failed with {response.status_code}"
                error_data = None
                try:
                    error_data = orjson.loads(response.content)
                    error_msg += f": {error_data}"
                except (ValueError, TypeError, orjson.JSONDecodeError) as e:
                    logger.debug(f"Could not parse error response as JSON: {e}")
                    error_msg += f": {response.text[:200]}"

                raise APIError(
                    error_msg,
                    status_code=response.status_code,
                    response=error_data
                )

            try:
                return orjson.loads(response.content)
            except (ValueError, orjson.JSONDecodeError) as e:
                logger.error(f"Invalid JSON response: {response.text[:200]}")
                raise APIError(f"Invalid JSON response: {e}", status_code=response.status_code) from e

        except requests.exceptions.Timeout as e:
            status = "timeout"
            logger.error(f"Request timeout: {method} {url}")
            raise TimeoutError(f"Request timeout: {e}") from e

        except requests.exceptions.ConnectionError as e:
            logger.error(f"Connection error: {method} {url}")
            raise APIError(f"Connection error: {e}") from e

        except requests.exceptions.RequestException as e:
            logger.error(f"Unexpected error: {method} {url}: {e}")
            raise APIError(f"Unexpected error: {e}") from e

        finally:
            self.metrics.track_api_request(method, path, status)
            self.metrics.track_api_latency(method, path, time.time() - start)

    def close(self) -> None:
        """Close the HTTP session."""
        self.session.close()
