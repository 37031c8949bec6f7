"""
httpx transport for request descriptors.

Keeps network code separate from the model: the model builds a descriptor,
the transport turns it into an httpx request and hands back the response.
Responses outside 2xx/3xx raise httpx.HTTPStatusError with the response attached.
"""

import json
import logging
from typing import Any, Dict, Mapping, Optional

import httpx

logger = logging.getLogger(__name__)

MS = 1000.0


def to_httpx_timeout(timeout: Any) -> httpx.Timeout:
    """Map per-phase millisecond thresholds onto httpx's four timeouts (seconds)."""
    if isinstance(timeout, httpx.Timeout):
        return timeout
    if isinstance(timeout, (int, float)):
        return httpx.Timeout(timeout / MS)
    if not timeout:
        return httpx.Timeout(None)

    def phase(*names):
        values = [timeout[name] for name in names if timeout.get(name) is not None]
        return max(values) / MS if values else None

    return httpx.Timeout(
        connect=phase('lookup', 'connect', 'secureConnect'),
        read=phase('response', 'socket'),
        write=phase('send'),
        pool=phase('socket'),
    )


def encode_json(data: Any) -> bytes:
    return json.dumps(data, separators=(',', ':')).encode('utf-8')


class HttpxTransport:
    def __init__(self, client: httpx.AsyncClient = None):
        """Wrap a shared AsyncClient; one is created when none is given."""
        self._client = client or httpx.AsyncClient(follow_redirects=True)

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client

    def build_request(self, client: httpx.AsyncClient, settings: Mapping[str, Any]) -> httpx.Request:
        headers: Dict[str, str] = dict(settings.get('headers') or {})
        content: Optional[bytes] = None

        if settings.get('json') is not None:
            content = encode_json(settings['json'])
            if not any(k.lower() == 'content-type' for k in headers):
                headers['Content-Type'] = 'application/json'
        elif settings.get('body') is not None:
            content = settings['body']
            if isinstance(content, str):
                content = content.encode('utf-8')

        return client.build_request(
            settings.get('method', 'GET'),
            settings['url'],
            headers=headers,
            content=content,
            timeout=to_httpx_timeout(settings.get('timeout')),
        )

    def _auth(self, settings: Mapping[str, Any]) -> Optional[httpx.BasicAuth]:
        if settings.get('username') is None and settings.get('password') is None:
            return None
        return httpx.BasicAuth(settings.get('username') or '', settings.get('password') or '')

    async def send(self, settings: Mapping[str, Any]) -> httpx.Response:
        """Send one request described by settings; raises for non-2xx/3xx responses."""
        agent = settings.get('agent')
        if agent:
            mounts = {scheme + '://': transport for scheme, transport in agent.items()}
            async with httpx.AsyncClient(mounts=mounts, follow_redirects=True) as client:
                return await self._send(client, settings)
        return await self._send(self._client, settings)

    async def _send(self, client: httpx.AsyncClient, settings: Mapping[str, Any]) -> httpx.Response:
        request = self.build_request(client, settings)
        logger.debug(f"sending {request.method} {request.url}")
        response = await client.send(request, auth=self._auth(settings))
        if response.status_code >= 400:
            raise httpx.HTTPStatusError(
                f"Response code {response.status_code} for {request.method} {request.url}",
                request=request,
                response=response,
            )
        return response

    async def aclose(self):
        await self._client.aclose()
