"""
Entrypoint: load .env and config, init logging, run one fetch/save/delete
against a remote endpoint and print the outcome as JSON.
"""

import argparse
import asyncio
import json
import sys

from dotenv import load_dotenv


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='remote-model', description=__doc__)
    parser.add_argument('operation', choices=('fetch', 'save', 'delete'))
    parser.add_argument('url', nargs='?', help='endpoint url, defaults to REMOTE_MODEL_URL')
    parser.add_argument('--data', default=None, help='JSON object of attributes to save')
    parser.add_argument('--method', default=None, help='override the HTTP method')
    parser.add_argument('--timeout', type=int, default=None, help='timeout in milliseconds')
    parser.add_argument('--auth', default=None, help='user:pass')
    parser.add_argument('--proxy', default=None, help='proxy uri')
    parser.add_argument('--header', action='append', default=[], help='Name: value, may be repeated')
    return parser


def parse_headers(values) -> dict:
    headers = {}
    for value in values:
        name, sep, content = value.partition(':')
        if not sep:
            raise ValueError(f"Invalid header, expected 'Name: value': {value}")
        headers[name.strip()] = content.strip()
    return headers


async def run(args: argparse.Namespace) -> int:
    """Run the requested operation, print the outcome and return an exit code."""
    # imported late so .env overrides are visible to the global config
    from .remote_model import RemoteModel

    options = {}
    for key in ('url', 'timeout', 'auth', 'proxy'):
        value = getattr(args, key)
        if value is not None:
            options[key] = value
    headers = parse_headers(args.header)
    if headers:
        options['headers'] = headers

    attributes = json.loads(args.data) if args.data else None
    model = RemoteModel(attributes, options)

    call_args = {'method': args.method} if args.method else None
    try:
        outcome = await getattr(model, args.operation)(call_args)
    finally:
        await model.aclose()

    error = outcome.error
    if error is not None and not isinstance(error, dict):
        error = {'message': str(error), 'status': getattr(error, 'status', None)}

    print(json.dumps({
        'error': error,
        'data': outcome.data,
        'status_code': outcome.status_code,
        'response_time': outcome.response_time,
    }, indent=2, default=str))
    return 1 if outcome.error is not None else 0


def main(argv=None) -> int:
    load_dotenv()

    from .config import config
    from .logging_utils import configure_logging

    log_config = config.logging
    configure_logging(log_config.get('level', 'INFO'), log_config.get('renderer', 'json'))

    args = build_parser().parse_args(argv)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
