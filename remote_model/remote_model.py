"""
A model whose attributes are synchronised with a remote HTTP endpoint.

fetch/save/delete build a request descriptor from the model options and the
per-call args, send it through the transport, and turn the response into
model attributes or an error. Every outcome is reported to the hooks, the
outbound logger and the model's events, then to the optional callback.
"""

import functools
import inspect
import json
import logging
import time
from typing import Any, Callable, Dict, Mapping, NamedTuple, Optional, Tuple

import httpx

from .config import config
from .errors import ModelError, ResponseParseError
from .local_model import LocalModel
from .logging_utils import get_outbound_logger
from .normalizers import (
    URL_PART_KEYS,
    build_proxy_agent,
    kebab_case,
    normalize_auth,
    normalize_timeout,
    normalize_url,
)
from .notifications import FAIL, SUCCESS, SYNC, HookTable, Notifier
from .transport import HttpxTransport

logger = logging.getLogger(__name__)

STRATEGIES = ('url', 'auth', 'timeout', 'proxy', 'parse', 'parse_error', 'prepare')

SYNC_TEMPLATE = 'Model request sent :out_verb :out_request'
SUCCESS_TEMPLATE = 'Model request success :out_verb :out_request :out_response_code'
FAIL_TEMPLATE = 'Model request failed :out_verb :out_request :out_response_code :out_error'


class Outcome(NamedTuple):
    error: Any
    data: Any
    status_code: Optional[int]
    response_time: Optional[float]


class RemoteModel:
    """
    HTTP synchronised attribute model.

    Options: url, timeout, auth, proxy, headers, label, logging, hooks.
    Strategies (url, auth, timeout, proxy, parse, parse_error, prepare) can be
    passed as keyword arguments; each is called with the model first.
    """

    def __init__(self, attributes: Mapping[str, Any] = None, options: Mapping[str, Any] = None, *,
                 transport: HttpxTransport = None, logger=None, store: LocalModel = None,
                 **strategies: Callable):
        unknown = set(strategies) - set(STRATEGIES)
        if unknown:
            raise TypeError(f"Unknown strategies: {', '.join(sorted(unknown))}")

        self.options: Dict[str, Any] = config.model_options(options)
        self.options['label'] = self.options.get('label') or kebab_case(type(self).__name__)

        self.store = store if store is not None else LocalModel()
        if attributes:
            self.store.set(attributes, silent=True)

        self._transport = transport
        self.logger = logger or get_outbound_logger(self.options['label'])

        for name, strategy in strategies.items():
            setattr(self, name, functools.partial(strategy, self))

        self.notifier = Notifier(self._hook, self._log, self.emit)

    @property
    def transport(self) -> HttpxTransport:
        if self._transport is None:
            self._transport = HttpxTransport()
        return self._transport

    async def aclose(self):
        if self._transport is not None:
            await self._transport.aclose()

    # attribute store

    @property
    def attributes(self) -> Dict[str, Any]:
        return self.store.attributes

    @attributes.setter
    def attributes(self, value: Dict[str, Any]):
        self.store.attributes = value

    def get(self, key: str, default: Any = None) -> Any:
        return self.store.get(key, default)

    def set(self, key, value: Any = None, silent: bool = False) -> 'RemoteModel':
        self.store.set(key, value, silent=silent)
        return self

    def unset(self, keys, silent: bool = False) -> 'RemoteModel':
        self.store.unset(keys, silent=silent)
        return self

    def increment(self, key: str, amount=1) -> 'RemoteModel':
        self.store.increment(key, amount)
        return self

    def reset(self, silent: bool = False) -> 'RemoteModel':
        self.store.reset(silent=silent)
        return self

    def to_json(self) -> Dict[str, Any]:
        return self.store.to_json()

    # events share the store's channel so change and request events arrive in one place

    def on(self, event: str, listener: Callable) -> 'RemoteModel':
        self.store.on(event, listener)
        return self

    def once(self, event: str, listener: Callable) -> 'RemoteModel':
        self.store.once(event, listener)
        return self

    def off(self, event: str, listener: Callable = None) -> 'RemoteModel':
        self.store.off(event, listener)
        return self

    def emit(self, event: str, *args: Any) -> bool:
        return self.store.emit(event, *args)

    # public operations

    @staticmethod
    def _split_args(args, callback):
        if callback is None and callable(args):
            return None, args
        return args, callback

    async def fetch(self, args: Mapping[str, Any] = None, callback: Callable = None) -> Outcome:
        args, callback = self._split_args(args, callback)
        settings = self.request_config({'method': 'GET'}, args)
        return await self.request(settings, callback)

    async def save(self, args: Mapping[str, Any] = None, callback: Callable = None) -> Outcome:
        args, callback = self._split_args(args, callback)
        try:
            body = self.prepare()
            if inspect.isawaitable(body):
                body = await body
        except Exception as err:
            logger.debug(f"prepare failed: {err!r}")
            if callable(callback):
                callback(err, None, None)
            return Outcome(err, None, None, None)

        settings = self.request_config({'method': 'POST', 'json': body}, args)
        return await self.request(settings, callback)

    async def delete(self, args: Mapping[str, Any] = None, callback: Callable = None) -> Outcome:
        args, callback = self._split_args(args, callback)
        settings = self.request_config({'method': 'DELETE'}, args)
        return await self.request(settings, callback)

    async def prepare(self) -> Dict[str, Any]:
        return self.to_json()

    # request builder

    def request_config(self, config: Mapping[str, Any], args: Mapping[str, Any] = None) -> Dict[str, Any]:
        """Build a fresh request descriptor; neither input is modified."""
        settings = dict(config)
        if isinstance(args, str):
            args = {'url': args}
        if args:
            settings.update(args)

        url = settings.pop('url', None)
        uri = settings.pop('uri', None)
        url = url or uri
        parts = {key: settings.pop(key) for key in URL_PART_KEYS if key in settings}
        if parts:
            base = dict(url) if isinstance(url, Mapping) else {'url': url}
            url = {**base, **parts}
        settings['url'] = self.url(url, args)

        settings['timeout'] = self.timeout(settings.get('timeout'))

        auth = self.auth(settings.pop('auth', None))
        if auth:
            if isinstance(auth, Mapping):
                settings['username'] = auth.get('username', auth.get('user'))
                settings['password'] = auth.get('password', auth.get('pass'))
            else:
                settings['username'] = auth.username
                settings['password'] = auth.password

        agent = self.proxy(settings.pop('proxy', None), settings['url'])
        if agent:
            settings['agent'] = agent

        headers = {**(self.options.get('headers') or {}), **(settings.get('headers') or {})}
        if headers:
            settings['headers'] = headers
        else:
            settings.pop('headers', None)

        logger.debug(f"request_config {settings.get('method')} {settings['url']}")
        return settings

    def url(self, url=None, args=None) -> Optional[str]:
        """Resolve the request url; `args` are the per-call arguments, unused by default."""
        return normalize_url(url, self.options.get('url'))

    def auth(self, auth=None):
        return normalize_auth(auth if auth is not None else self.options.get('auth'))

    def timeout(self, timeout=None):
        return normalize_timeout(timeout if timeout is not None else self.options.get('timeout'))

    def proxy(self, proxy=None, url: str = None):
        return build_proxy_agent(
            proxy if proxy is not None else self.options.get('proxy'),
            url,
            headers=self.options.get('headers'),
        )

    # dispatcher

    async def request(self, settings: Dict[str, Any], callback: Callable = None) -> Outcome:
        self.notifier.dispatch(SYNC, {'settings': settings}, (settings,))

        start = time.perf_counter_ns()

        def elapsed() -> float:
            return round((time.perf_counter_ns() - start) / 1e6, 3)

        try:
            response = await self.transport.send(settings)
        except httpx.HTTPStatusError as err:
            response_time = elapsed()
            error, data, status_code = self.handle_response(err.response)
        except Exception as err:
            response_time = elapsed()
            error = ModelError(err)
            logger.debug(f"request got error {error!r}")
            data, status_code = None, error.status
        else:
            response_time = elapsed()
            logger.debug(f"request got response {response.status_code}")
            error, data, status_code = self.handle_response(response)

        return self._finish(settings, callback, error, data, status_code, response_time)

    def _finish(self, settings, callback, error, data, status_code, response_time) -> Outcome:
        if error is not None:
            payload = {'settings': settings, 'status_code': status_code,
                       'response_time': response_time, 'err': error, 'data': data}
            self.notifier.dispatch(FAIL, payload, (error, data, settings, status_code, response_time))
        else:
            payload = {'data': data, 'settings': settings,
                       'status_code': status_code, 'response_time': response_time}
            self.notifier.dispatch(SUCCESS, payload, (data, settings, status_code, response_time))

        if callable(callback):
            callback(error, data, response_time)
        return Outcome(error, data, status_code, response_time)

    # response interpreter

    def handle_response(self, response: httpx.Response) -> Tuple[Any, Any, Optional[int]]:
        logger.debug(f"handle_response {response.status_code}")
        body = response.text
        try:
            data = json.loads(body or '{}')
        except ValueError as err:
            error = ResponseParseError(err, status=response.status_code, body=body)
            return error, None, error.status
        return self.parse_response(response.status_code, data)

    def parse_response(self, status_code: int, data: Any) -> Tuple[Any, Any, Optional[int]]:
        if status_code >= 400:
            return self.parse_error(status_code, data), data, status_code

        try:
            data = self.parse(data)
        except Exception as err:
            return err, None, status_code

        return None, data, status_code

    def parse(self, data: Any) -> Any:
        if isinstance(data, list):
            self.set('data', data)
        elif isinstance(data, dict):
            self.set(data)
        return data

    def parse_error(self, status_code: int, data: Any) -> Dict[str, Any]:
        if isinstance(data, Mapping):
            return {'status': status_code, **data}
        return {'status': status_code, 'data': data}

    # notifications

    def _hook(self, phase: str, payload: Mapping[str, Any]):
        HookTable(self, self.options.get('hooks'))(phase, payload)

    def _log(self, phase: str, payload: Mapping[str, Any]):
        if phase == SYNC:
            self.log_sync(**payload)
        elif phase == SUCCESS:
            # response bodies never feed the success record
            self.log_success(**{key: value for key, value in payload.items() if key != 'data'})
        else:
            self.log_error(**payload)

    @staticmethod
    def _error_message(err: Any) -> Optional[str]:
        if err is None:
            return None
        if isinstance(err, Mapping):
            return err.get('message')
        return getattr(err, 'message', None) or str(err) or None

    def log_meta(self, settings: Mapping[str, Any], status_code: int = None, response_time: float = None,
                 err: Any = None, data: Any = None) -> Dict[str, Any]:
        meta = {
            'out_verb': settings.get('method'),
            'out_request': settings.get('url'),
        }

        if status_code:
            meta['out_response_code'] = status_code

        if response_time:
            meta['out_response_time'] = response_time

        out_error = self._error_message(err)
        if not out_error and isinstance(data, Mapping):
            out_error = data.get('error') or data.get('errors')
        if out_error:
            meta['out_error'] = out_error

        if err is not None:
            body = err.get('body') if isinstance(err, Mapping) else getattr(err, 'body', None)
            meta['out_error_body'] = self.logger.trim_html(body)

        # static logging fields never replace computed ones
        return {**(self.options.get('logging') or {}), **meta}

    def log_sync(self, **payload):
        self.logger.outbound(SYNC_TEMPLATE, self.log_meta(**payload))

    def log_success(self, **payload):
        self.logger.outbound(SUCCESS_TEMPLATE, self.log_meta(**payload))

    def log_error(self, **payload):
        self.logger.outbound(FAIL_TEMPLATE, self.log_meta(**payload))
