#!/usr/bin/env python
"""Environment & connectivity diagnostics for the Circonus API client.

Usage:
  python scripts/diagnose_env.py [--connectivity]

Without flags runs variable presence checks. Use --connectivity to call GET /user/current.
"""
from __future__ import annotations
import logging
import os
import sys
from pathlib import Path
from typing import Dict, List
from circonus.client import USER, CirconusClient
from circonus.exceptions import ApiRequestError, TokenNotValidatedError, ResourceNotFoundError

PROJECT_ROOT = Path(__file__).resolve().parents[1]

MANDATORY: List[str] = ['CIRCONUS_APP_NAME', 'CIRCONUS_API_TOKEN']
SECRETS = {'CIRCONUS_API_TOKEN'}
OPTIONAL: List[str] = ['CIRCONUS_API_HOST', 'CIRCONUS_API_PATH', 'CIRCONUS_TIMEOUT', 'CIRCONUS_RETRIES', 'CIRCONUS_RETRY_INTERVAL']


def load_env_file(env_path: Path) -> None:
    if not env_path.exists():
        return
    for line in env_path.read_text(encoding='utf-8').splitlines():
        line = line.strip()
        if not line or line.startswith('#') or '=' not in line:
            continue
        k, v = line.split('=', 1)
        k = k.strip(); v = v.strip().strip('"').strip("'")
        if not k:
            continue
        existing = os.environ.get(k)
        if existing is None or existing.strip() == '':
            os.environ[k] = v


def mask(val: str | None) -> str | None:
    if not val:
        return val
    if len(val) <= 6:
        return '*' * len(val)
    return val[:4] + '...' + val[-4:]


def check_presence() -> Dict[str, str]:
    return {k: 'OK' if (os.getenv(k) or '').strip() else 'MISSING' for k in MANDATORY}


def print_report():
    presence = check_presence()
    widest = max(len(k) for k in MANDATORY + OPTIONAL)
    print('\n[VARIABLE PRESENCE]')
    for k, status in presence.items():
        raw = os.getenv(k)
        shown = mask(raw) if k in SECRETS else raw
        print(f"  {k.ljust(widest)} : {status:<8} {'' if status != 'OK' else shown}")
    print('\n[OPTIONAL SETTINGS]')
    for k in OPTIONAL:
        raw = os.getenv(k)
        if raw:
            print(f"  {k.ljust(widest)} = {raw}")
    print()


def test_connectivity() -> bool:
    missing = [k for k, status in check_presence().items() if status != 'OK']
    if missing:
        print(f"[circonus] Skipping connectivity test (missing: {', '.join(missing)})")
        return False
    client = CirconusClient.from_env()
    print(f"[circonus] GET {client.config.url_for(USER + '/current')}")
    try:
        user = client.get(USER, 'current')
    except TokenNotValidatedError:
        print("[circonus] HINT 401: token unknown or not yet validated for this app name.")
        return False
    except ResourceNotFoundError:
        print("[circonus] HINT 404: check CIRCONUS_API_HOST / CIRCONUS_API_PATH (expected /v2).")
        return False
    except ApiRequestError as e:
        print(f"[circonus] ERROR {type(e).__name__}: {e}")
        return False
    print(f"[circonus] OK: {user.get('email', user) if isinstance(user, dict) else user}")
    return True


def main(argv: List[str]) -> int:
    load_env_file(PROJECT_ROOT / '.env')
    logging.basicConfig(level=logging.INFO, format='[%(levelname)s] %(message)s')
    flags = set(a for a in argv[1:] if a.startswith('--'))
    print_report()
    if '--connectivity' in flags:
        return 0 if test_connectivity() else 1
    return 0

if __name__ == '__main__':
    sys.exit(main(sys.argv))
