"""
Minimal JSON-RPC 1.1 client for the SDK callback server.
The callback server runs beside the job on plain http; the caller's token is
forwarded in the Authorization header only.
"""

import logging
import random
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

class RpcError(Exception):
    """
    A remote call failed in transport or returned a JSON-RPC error member.
    """

    def __init__(self, method: str, message: str, code: Optional[int] = None, data: Optional[str] = None):
        super().__init__(f"{method}: {message}")
        self.method = method
        self.message = message
        self.code = code
        self.data = data

class CallbackClient:
    """
    Calls `Module.method` on the callback server and returns the first result.

    :param url: Callback server URL.
    :param token: Caller's auth token, forwarded unchanged.
    :param timeout: Seconds to wait for each call.
    :param session: Optional requests session, mainly for tests.
    """

    def __init__(self, url: str, token: Optional[str] = None, timeout: float = 1800.0,
                 session: Optional[requests.Session] = None):
        self.url = url
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()

    def close(self):
        self.session.close()

    def __enter__(self) -> "CallbackClient":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = self.token
        return headers

    def call(self, method: str, params: Dict[str, Any]) -> Any:
        """
        Invoke a remote method with a single params object.

        :param method: Fully qualified method name, e.g. AssemblyUtil.get_assembly_as_fasta.
        :param params: The method's parameter object.
        :return: result[0] of the JSON-RPC reply.
        :raises RpcError: on transport failure, a non-JSON reply or an error member.
        """
        payload = {
            "method": method,
            "params": [params],
            "version": "1.1",
            "id": str(random.random())[2:]
        }
        logger.debug(f"Calling {method} at {self.url}")
        try:
            r = self.session.post(self.url, json=payload, headers=self._headers(), timeout=self.timeout)
        except requests.RequestException as e:
            raise RpcError(method, f"request to {self.url} failed: {e}") from e

        try:
            body = r.json()
        except ValueError:
            body = None

        if isinstance(body, dict) and body.get("error"):
            error = body["error"]
            if isinstance(error, dict):
                raise RpcError(method, error.get("message") or error.get("name") or "unknown error",
                               code=error.get("code"), data=error.get("error"))
            raise RpcError(method, str(error))
        if not r.ok:
            raise RpcError(method, f"HTTP {r.status_code}: {r.text[:200]}", code=r.status_code)
        if not isinstance(body, dict) or "result" not in body:
            raise RpcError(method, "reply is not a JSON-RPC result")

        result = body["result"]
        if isinstance(result, list):
            return result[0] if result else None
        return result
