#!/usr/bin/env python
"""Command-line front end for the Circonus API client.

Examples:
  python scripts/circonus_request.py --action list --resource checkbundle --out data/check_bundles.json
  python scripts/circonus_request.py --action get --resource user --id current
  python scripts/circonus_request.py --action add --resource graph --data @graph.json
  python scripts/circonus_request.py --action list --resource check --param f_target=example.com --timeout 10

Credentials come from CIRCONUS_APP_NAME / CIRCONUS_API_TOKEN (a local .env is honored).

Options:
  --timeout seconds (overall deadline per call, 0 disables it)
  --retries n (re-attempts after a rate-limited response)
  --verbose

"""
from __future__ import annotations
import argparse
import json
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Optional
from circonus.client import CirconusClient
from circonus.config import ClientConfig
from circonus.exceptions import ApiRequestError

logger = logging.getLogger('circonus_request')

ACTIONS = ['list', 'get', 'add', 'edit', 'delete']


# Loads a local .env without overriding variables that are already set
def _load_env_file(env_path: Path) -> None:
    if not env_path.exists():
        return
    for line in env_path.read_text(encoding='utf-8').splitlines():
        line = line.strip()
        if not line or line.startswith('#') or '=' not in line:
            continue
        k, v = line.split('=', 1)
        k = k.strip(); v = v.strip().strip('"').strip("'")
        existing = os.environ.get(k)
        if existing is None or existing.strip() == '':
            os.environ[k] = v


def parse_params(pairs: Optional[List[str]]) -> Dict[str, str]:
    params: Dict[str, str] = {}
    for pair in pairs or []:
        if '=' not in pair:
            raise SystemExit(f'--param expects key=value, got {pair!r}')
        k, v = pair.split('=', 1)
        params[k.strip()] = v
    return params


def parse_data(raw: Optional[str]) -> Any:
    if raw is None:
        return None
    if raw.startswith('@'):
        raw = Path(raw[1:]).read_text(encoding='utf-8')
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise SystemExit(f'--data is not valid JSON: {e}')


def parse_args(argv: Optional[List[str]] = None):
    p = argparse.ArgumentParser(description='Send one request to the Circonus API')
    p.add_argument('--action', required=True, choices=ACTIONS)
    p.add_argument('--resource', required=True)
    p.add_argument('--id', help='Resource id (get/edit/delete)')
    p.add_argument('--data', help='JSON request body, or @path to a JSON file')
    p.add_argument('--param', action='append', help='Query parameter key=value (repeatable)')
    p.add_argument('--timeout', type=float, help='Per-call deadline in seconds (0 disables it)')
    p.add_argument('--retries', type=int, help='Retries after a rate-limited response')
    p.add_argument('--out', help='Output JSON file path (stdout when omitted)')
    p.add_argument('--verbose', action='store_true')
    return p.parse_args(argv)


def build_client(args) -> CirconusClient:
    config = ClientConfig.from_env()
    overrides = {}
    if args.timeout is not None:
        overrides['timeout'] = args.timeout
    if args.retries is not None:
        overrides['retries'] = args.retries
    if overrides:
        config = replace(config, **overrides)
    return CirconusClient(config)


def run(args, client: CirconusClient) -> Any:
    action = args.action
    if action in ('get', 'edit', 'delete') and not args.id:
        raise SystemExit(f'--id required for {action}')
    params = parse_params(args.param)
    data = parse_data(args.data)
    if action == 'list':
        return client.list(args.resource, params=params)
    if action == 'get':
        return client.get(args.resource, args.id, params=params)
    if action == 'add':
        if data is None:
            raise SystemExit('--data required for add')
        return client.add(args.resource, data, params=params)
    if action == 'edit':
        if data is None:
            raise SystemExit('--data required for edit')
        return client.edit(args.resource, args.id, data)
    return client.delete(args.resource, args.id, data)


def main(argv: Optional[List[str]] = None) -> int:
    _load_env_file(Path('.env'))
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format='[%(levelname)s] %(message)s')
    try:
        client = build_client(args)
        result = run(args, client)
    except ApiRequestError as e:
        logger.error('%s: %s', type(e).__name__, e)
        return 1

    text = json.dumps(result, ensure_ascii=False, indent=2)
    if args.out:
        out_path = Path(args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(text, encoding='utf-8')
        if args.verbose:
            print(f'[done] Wrote {out_path}')
    else:
        print(text)
    return 0

if __name__ == '__main__':
    sys.exit(main())
