"""
Turn loosely typed request options into canonical request descriptor fragments.

Accepted shapes:
- url:     "http://host/path" | {"url": ..., "protocol", "hostname", "port", "path", "query"}
- auth:    "user:pass" | {"username", "password"} | {"user", "pass"}
- timeout: milliseconds (int/float) | per-phase mapping passed through unchanged
- proxy:   "http://proxy:8080" | {"uri": ..., "headers": {...}, **transport_options}
"""

import re
import urllib.parse
from typing import Any, Dict, Mapping, NamedTuple, Optional, Union

import httpx

DEFAULT_TIMEOUT = 60000

TIMEOUT_PHASES = ('lookup', 'connect', 'secureConnect', 'socket', 'send', 'response')

URL_PART_KEYS = ('protocol', 'hostname', 'host', 'port', 'path', 'pathname', 'query')


class Credentials(NamedTuple):
    username: Optional[str]
    password: Optional[str]


def kebab_case(name: str) -> str:
    """RemoteModel -> remote-model, HTTPServerModel -> http-server-model"""
    words = re.findall(r'[A-Z]+(?=[A-Z][a-z]|\d|\b|_)|[A-Z]?[a-z]+|[A-Z]+|\d+', name)
    return '-'.join(word.lower() for word in words)


def normalize_url(url: Union[str, Mapping[str, Any], None], default: Optional[str] = None) -> Optional[str]:
    if url is None:
        return default
    if isinstance(url, Mapping):
        return expand_url(url, default)
    return url


def expand_url(spec: Mapping[str, Any], default: Optional[str] = None) -> str:
    """Merge URL parts from a mapping onto its base url and render a string."""
    base = spec.get('url') or spec.get('uri') or spec.get('href') or default or ''
    parts = urllib.parse.urlsplit(base)

    scheme = (spec.get('protocol') or parts.scheme or 'http').rstrip(':')
    hostname = spec.get('hostname') or spec.get('host') or parts.hostname or ''
    port = spec.get('port') or parts.port
    netloc = hostname
    if parts.username:
        userinfo = parts.username + (':' + parts.password if parts.password else '')
        netloc = userinfo + '@' + netloc
    if port:
        netloc += ':' + str(port)

    path = spec.get('path') or spec.get('pathname') or parts.path or '/'

    query = parts.query
    extra = spec.get('query')
    if extra:
        if isinstance(extra, Mapping):
            extra = urllib.parse.urlencode(extra, doseq=True)
        query = query + '&' + extra if query else extra

    return urllib.parse.urlunsplit((scheme, netloc, path, query, parts.fragment))


def normalize_auth(auth: Union[str, Mapping[str, Any], None]) -> Optional[Credentials]:
    if not auth:
        return None
    if isinstance(auth, str):
        username, _, password = auth.partition(':')
        return Credentials(username, password)
    return Credentials(
        auth.get('username', auth.get('user')),
        auth.get('password', auth.get('pass')),
    )


def normalize_timeout(timeout: Union[int, float, Mapping[str, Any], None]) -> Any:
    """Expand a millisecond value to every connection phase; mappings pass through."""
    if timeout is None:
        timeout = DEFAULT_TIMEOUT
    if isinstance(timeout, (int, float)) and not isinstance(timeout, bool):
        return {phase: timeout for phase in TIMEOUT_PHASES}
    return timeout


def build_proxy_agent(proxy: Union[str, Mapping[str, Any], None], target_url: Optional[str],
                      headers: Optional[Mapping[str, str]] = None) -> Optional[Dict[str, httpx.AsyncHTTPTransport]]:
    """
    Build a proxying transport keyed by the target url's scheme.

    The key is "https" for https targets and "http" for everything else; the
    proxy's own scheme does not matter.
    """
    if not proxy or not target_url:
        return None

    if isinstance(proxy, str):
        proxy = {'uri': proxy}

    options = {
        'headers': dict(headers or {}),
        'keep_alive': False,
        'max_sockets': 1,
        **proxy,
    }
    uri = options.pop('uri')
    proxy_headers = options.pop('headers') or None
    keep_alive = options.pop('keep_alive')
    max_sockets = options.pop('max_sockets')

    limits = httpx.Limits(
        max_connections=max_sockets,
        max_keepalive_connections=max_sockets if keep_alive else 0,
    )
    agent = httpx.AsyncHTTPTransport(
        proxy=httpx.Proxy(uri, headers=proxy_headers),
        limits=limits,
        **options,
    )

    scheme = urllib.parse.urlsplit(str(target_url)).scheme
    return {'https': agent} if scheme == 'https' else {'http': agent}
