import json
import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from sakuracloud_plugin import __version__
from sakuracloud_plugin.config.defaults import as_bool
from sakuracloud_plugin.infrastructure.exceptions import ConnectionError
from sakuracloud_plugin.infrastructure.sakuracloud.exceptions import from_response

logger = logging.getLogger(__name__)

# Zone used for resources that are not bound to a zone (SIM, ProxyLB, ...)
GLOBAL_ZONE = "is1a"

# Status codes the API answers while it is busy
RETRYABLE_STATUS_CODES = (423, 503)


class SakuraCloudClient:
    """
    Centralized SakuraCloud API client.
    Handles session setup, authentication, retries and error mapping.
    """

    def __init__(self,
                 access_token: str,
                 access_token_secret: str,
                 default_zone: str,
                 config: Optional[Dict[str, Any]] = None):
        """
        Initialize the client.

        Args:
            access_token: API access token
            access_token_secret: API access token secret
            default_zone: Zone used when a resource does not name one
            config: Optional configuration dictionary
        """
        config = config or {}
        self.default_zone = default_zone
        self.api_root_url = config.get('SAKURACLOUD_API_ROOT_URL', 'https://secure.sakura.ad.jp/cloud').rstrip('/')
        self.request_timeout = int(config.get('SAKURACLOUD_REQUEST_TIMEOUT_SEC', 300))
        self.default_timeout = int(config.get('SAKURACLOUD_TIMEOUT_SEC', 1200))
        self.polling_interval = int(config.get('SAKURACLOUD_POLLING_INTERVAL_SEC', 5))
        self.trace = as_bool(config.get('SAKURACLOUD_TRACE', False))

        retries = Retry(
            total=int(config.get('SAKURACLOUD_RETRY_MAX', 10)),
            backoff_factor=int(config.get('SAKURACLOUD_RETRY_INTERVAL_SEC', 5)),
            status_forcelist=RETRYABLE_STATUS_CODES,
            allowed_methods=frozenset(['GET', 'POST', 'PUT', 'DELETE']),
            raise_on_status=False,
        )
        self.session = requests.Session()
        self.session.auth = (access_token, access_token_secret)
        self.session.headers.update({
            'Content-Type': 'application/json; charset=UTF-8',
            'User-Agent': f'sakuracloud-plugin/{__version__}',
            'X-Sakura-Bigint-As-Int': '1',
        })
        adapter = HTTPAdapter(max_retries=retries)
        self.session.mount('https://', adapter)
        self.session.mount('http://', adapter)

    def zone_url(self, zone: str) -> str:
        return f"{self.api_root_url}/zone/{zone}/api/cloud/1.1"

    def request(self, method: str, zone: str, path: str,
                body: Optional[Dict[str, Any]] = None,
                query: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Send a request to the zone API.

        Args:
            method: HTTP method
            zone: Target zone
            path: Path below the zone API root, e.g. "archive/123"
            body: Optional JSON body
            query: Optional search parameters, sent as a JSON query string

        Returns:
            Decoded JSON response (empty dict for empty bodies)

        Raises:
            SakuraCloudAPIError: If the API answers with an error status
            ConnectionError: If the API cannot be reached
        """
        url = f"{self.zone_url(zone)}/{path.lstrip('/')}"
        if query:
            url = f"{url}?{quote(json.dumps(query, separators=(',', ':')))}"

        data = json.dumps(body) if body is not None else None
        if self.trace:
            logger.debug(f"[TRACE] request: {method} {url} body={data}")

        try:
            response = self.session.request(method, url, data=data, timeout=self.request_timeout)
        except requests.RequestException as e:
            logger.error(f"Failed to call SakuraCloud API {method} {url}: {str(e)}")
            raise ConnectionError(f"Failed to call SakuraCloud API {method} {url}: {str(e)}")

        if self.trace:
            logger.debug(f"[TRACE] response: {method} {url} status={response.status_code} body={response.text}")

        payload = self._decode(response)
        if not response.ok:
            error = from_response(response.status_code, payload)
            logger.debug(f"SakuraCloud API {method} {url} failed: {error}")
            raise error
        return payload

    @staticmethod
    def _decode(response: requests.Response) -> Dict[str, Any]:
        if not response.content:
            return {}
        try:
            payload = response.json()
        except ValueError:
            return {}
        return payload if isinstance(payload, dict) else {}

    def get(self, zone: str, path: str, query: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self.request('GET', zone, path, query=query)

    def post(self, zone: str, path: str, body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self.request('POST', zone, path, body=body)

    def put(self, zone: str, path: str, body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self.request('PUT', zone, path, body=body)

    def delete(self, zone: str, path: str, body: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self.request('DELETE', zone, path, body=body)
