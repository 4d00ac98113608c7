#!/usr/bin/env python3
"""
Generate the process-manager ecosystem file for claim workers.

One app entry is emitted per key material file found under KEYPAIR_ROOT.
Each worker runs ``claim.sh`` with its keypair path, a default RPC URL and a
submit RPC URL, both picked round-robin from ``rpc_list.json``. The proxy
itself never reads this output.
"""

import argparse
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
import sys

from shared.config import get_config
from shared.errors import ConfigurationError
from service_proxy.app.pool.backend_pool import RpcLists, load_rpc_lists


REPO_ROOT = Path(__file__).resolve().parent.parent


def build_apps(
    keypair_root: Union[str, Path],
    rpc_lists: RpcLists,
    *,
    cwd: Union[str, Path] = REPO_ROOT,
    script: str = "./claim.sh",
) -> List[Dict[str, Any]]:
    """Build one claim app definition per keypair file."""
    keypair_root = Path(keypair_root)
    if not keypair_root.is_dir():
        raise ConfigurationError(f"Keypair root is not a directory: {keypair_root}")
    if not rpc_lists.submit_rpc_list:
        raise ConfigurationError("submit_rpc_list must contain at least one URL")

    default_list = rpc_lists.default_rpc_list
    submit_list = rpc_lists.submit_rpc_list
    keypairs = sorted(path for path in keypair_root.iterdir() if path.is_file())

    apps = []
    for i, keypair in enumerate(keypairs):
        keypair_id = keypair.name.split(".")[0]
        apps.append({
            "name": f"claim-{keypair_id}",
            "script": script,
            "args": f"{keypair} {default_list[i % len(default_list)]} {submit_list[i % len(submit_list)]}",
            "cwd": str(cwd),
            "interpreter": "/bin/bash",
            "autorestart": False,
        })
    return apps


def generate(keypair_root: Union[str, Path], rpc_list_file: Union[str, Path]) -> Dict[str, Any]:
    """Return the full ecosystem document."""
    return {"apps": build_apps(keypair_root, load_rpc_lists(rpc_list_file))}


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    config = get_config()
    parser = argparse.ArgumentParser(description="Generate the claim worker ecosystem file.")
    parser.add_argument("--keypair-root", type=Path, default=config.keypair_root, help="Directory of keypair files (KEYPAIR_ROOT)")
    parser.add_argument("--rpc-list-file", type=Path, default=Path(config.rpc_list_file), help="Path to rpc_list.json")
    parser.add_argument("--output", type=Path, default=None, help="Write JSON here instead of stdout")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    if args.keypair_root is None:
        print("[claim-config] KEYPAIR_ROOT is not set", file=sys.stderr)
        return 2

    try:
        document = generate(args.keypair_root, args.rpc_list_file)
    except ConfigurationError as exc:
        print(f"[claim-config] failed: {exc.message}", file=sys.stderr)
        return 1

    rendered = json.dumps(document, indent=2)
    if args.output:
        args.output.write_text(rendered + "\n")
    else:
        print(rendered)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
