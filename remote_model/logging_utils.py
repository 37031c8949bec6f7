"""
structlog setup and the outbound request logger used by remote models.
"""

import logging
import re
import sys
from typing import Any, Mapping, Optional

import structlog
from lxml import etree, html

TRIM_HTML_LENGTH = 400

_TOKEN = re.compile(r':([A-Za-z_][A-Za-z0-9_]*)')
_LOOKS_LIKE_HTML = re.compile(r'^\s*<(!doctype|html|head|body|[a-z][a-z0-9]*[\s>])', re.IGNORECASE)


def configure_logging(level: str = 'INFO', renderer: str = 'json'):
    """Configure stdlib logging and structlog for JSON (or console) output."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, str(level).upper(), logging.INFO),
    )

    final = structlog.dev.ConsoleRenderer() if renderer == 'console' else structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            final,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def interpolate(template: str, meta: Mapping[str, Any]) -> str:
    """Replace :token placeholders with metadata values, '-' when missing."""
    def replace(match):
        value = meta.get(match.group(1))
        return '-' if value is None else str(value)
    return _TOKEN.sub(replace, template)


def trim_html(body: Any, length: int = TRIM_HTML_LENGTH) -> Any:
    """Reduce an HTML error page to its collapsed text; other values pass through."""
    if not isinstance(body, (str, bytes)):
        return body
    if isinstance(body, bytes):
        body = body.decode('utf-8', errors='replace')
    if not _LOOKS_LIKE_HTML.match(body):
        return body
    try:
        text = html.fromstring(body).text_content()
    except (etree.ParserError, ValueError):
        return body
    text = ' '.join(text.split())
    if len(text) > length:
        text = text[:length] + '...'
    return text


class OutboundLogger:
    """Feeds outbound request metadata into a structlog logger."""

    def __init__(self, logger=None, name: Optional[str] = None):
        self.logger = logger or structlog.get_logger(name)

    def outbound(self, template: str, meta: Mapping[str, Any]):
        self.logger.info(interpolate(template, meta), **meta)

    def trim_html(self, body: Any) -> Any:
        return trim_html(body)


def get_outbound_logger(label: str) -> OutboundLogger:
    return OutboundLogger(name=':' + label)
