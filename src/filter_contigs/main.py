"""
Main entry point for the FilterContigs command-line tool.
Runs a single JSON-RPC call read from a job file (the way the SDK job runner
invokes a module) and writes the JSON-RPC response to an output file.
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from src.filter_contigs import service
from src.filter_contigs.core.errors import FilterContigsError
from src.filter_contigs.utils.config import SERVICE_NAME, ServiceConfig
from src.filter_contigs.utils.logging import setup_logging

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_UNKNOWN_METHOD = 2

def error_response(call_id: Any, name: str, message: str, code: int = -32500, detail: str = "") -> Dict[str, Any]:
    return {
        "version": "1.1",
        "id": call_id,
        "error": {"name": name, "code": code, "message": message, "error": detail}
    }

def execute_call(call: Dict[str, Any], token: Optional[str], config_dir: Optional[Path] = None) -> Tuple[Dict[str, Any], int]:
    """
    Execute one JSON-RPC call against the service.

    :param call: Parsed JSON-RPC request with method and params.
    :param token: Caller's auth token.
    :param config_dir: Where to write log.txt; the configured scratch when omitted.
    :return: The JSON-RPC response and the process exit status.
    """
    call_id = call.get("id")
    method = call.get("method")
    params = call.get("params") or []

    if method == f"{SERVICE_NAME}.status":
        return {"version": "1.1", "id": call_id, "result": [service.status()]}, EXIT_OK
    if method != f"{SERVICE_NAME}.filter_contigs":
        return error_response(call_id, "JSONRPCError", f"Unknown method: {method}", code=-32601), EXIT_UNKNOWN_METHOD

    config = ServiceConfig.from_environment()
    listener = setup_logging(config_dir or config.scratch)
    try:
        result = service.filter_contigs(params[0] if params else {}, token, config)
        return {"version": "1.1", "id": call_id, "result": [result]}, EXIT_OK
    except FilterContigsError as e:
        return error_response(call_id, type(e).__name__, str(e), detail=e.message), EXIT_FAILED
    except Exception as e:
        logger.exception(f"Critical failure: {e}")
        return error_response(call_id, "Server error", str(e), detail=repr(e)), EXIT_FAILED
    finally:
        listener.stop()

def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="FilterContigs: filter the contigs of an assembly by minimum length.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Execute a JSON-RPC call stored in a job file")
    run_parser.add_argument("input", help="JSON file holding the JSON-RPC call")
    run_parser.add_argument("output", help="File to write the JSON-RPC response to")
    run_parser.add_argument("token", nargs="?", default=None, help="Auth token (defaults to $KB_AUTH_TOKEN)")
    run_parser.add_argument("--log-dir", help="Directory for log.txt (defaults to the scratch directory)")

    subparsers.add_parser("status", help="Print the service status")

    args = parser.parse_args(argv)

    if args.command == "status":
        print(json.dumps(service.status(), indent=2))
        return EXIT_OK

    try:
        with open(args.input, "r", encoding="utf-8") as f:
            call = json.load(f)
    except (OSError, ValueError) as e:
        print(f"Could not read job file {args.input}: {e}", file=sys.stderr)
        return EXIT_FAILED
    if not isinstance(call, dict):
        print(f"Job file {args.input} does not hold a JSON-RPC call", file=sys.stderr)
        return EXIT_FAILED

    token = args.token or os.environ.get("KB_AUTH_TOKEN")
    log_dir = Path(args.log_dir) if args.log_dir else None
    try:
        response, status = execute_call(call, token, log_dir)
    except (OSError, ValueError) as e:
        # configuration problems, e.g. a missing callback url or deploy.cfg
        response, status = error_response(call.get("id"), "Server error", str(e)), EXIT_FAILED

    with open(args.output, "w", encoding="utf-8") as f:
        json.dump(response, f, indent=2)
    return status

if __name__ == "__main__":
    sys.exit(main())
