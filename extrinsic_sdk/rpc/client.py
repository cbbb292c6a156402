"""
JSON-RPC client for Substrate nodes.
"""
import itertools
import logging
import threading
import urllib.parse
from typing import Any, Dict, List, Optional

import requests
from pydantic import ValidationError
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from extrinsic_sdk.exceptions import InvalidValue, RpcConnectionError, RpcError, RpcResponseError
from extrinsic_sdk.models import RuntimeVersion
from extrinsic_sdk.utils import to_bytes


def validate_rpc_url(url: str) -> None:
    """
    Require https:// for anything but a local node.

    Raises:
        ValueError: If a remote URL does not use https
    """
    parsed = urllib.parse.urlparse(url)
    host = parsed.hostname or ""
    is_local = host in ("localhost", "127.0.0.1")
    if parsed.scheme != "https" and not is_local:
        raise ValueError(f"rpc_url must use https:// for security (got: {parsed.scheme}://)")


class JsonRpcClient:
    """
    Minimal JSON-RPC 2.0 client over HTTP.

    Args:
        url: Node RPC endpoint (e.g. "https://rpc.polkadot.io")
        retry_count: Number of retries for HTTP requests
        timeout: Timeout for HTTP requests in seconds
        session: Optional preconfigured requests session
        logger: Optional logger instance to use for debug logging
    """

    def __init__(
        self,
        url: str,
        retry_count: int = 3,
        timeout: int = 30,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None
    ):
        validate_rpc_url(url)
        self.url = url
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)
        self._ids = itertools.count(1)
        self._id_lock = threading.Lock()

        if session is None:
            session = requests.Session()
            retries = Retry(
                total=retry_count,
                backoff_factor=0.5,
                status_forcelist=[500, 502, 503, 504],
                allowed_methods=["GET", "POST"],
                raise_on_status=False,
                connect=retry_count,
                read=retry_count,
                other=retry_count
            )
            session.mount("http://", HTTPAdapter(max_retries=retries))
            session.mount("https://", HTTPAdapter(max_retries=retries))
        self.session = session

    def _next_id(self) -> int:
        with self._id_lock:
            return next(self._ids)

    def call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """
        Invoke an RPC method.

        Args:
            method: RPC method name (e.g. "chain_getBlockHash")
            params: Positional parameters

        Returns:
            The ``result`` member of the response

        Raises:
            RpcError: If the node returns an error envelope
            RpcConnectionError: If the node cannot be reached
            RpcResponseError: If the response is not valid JSON-RPC
        """
        request_id = self._next_id()
        body = {"jsonrpc": "2.0", "id": request_id, "method": method, "params": params or []}
        self.logger.debug(f"RPC request {request_id}: {method}")

        try:
            response = self.session.post(self.url, json=body, timeout=self.timeout)
        except requests.RequestException as e:
            self.logger.error(f"RPC request {method} failed: {e}")
            raise RpcConnectionError(f"Failed to reach {self.url}: {e}") from e

        if response.status_code >= 400:
            raise RpcResponseError(f"HTTP {response.status_code} from {self.url} for {method}")

        try:
            payload = response.json()
        except ValueError as e:
            raise RpcResponseError(f"Invalid JSON in response to {method}: {e}") from e

        if not isinstance(payload, dict):
            raise RpcResponseError(f"Unexpected response to {method}: {payload!r}")
        if payload.get("error") is not None:
            error = payload["error"]
            if not isinstance(error, dict):
                raise RpcResponseError(f"Malformed error in response to {method}: {error!r}")
            raise RpcError(error.get("code", 0), error.get("message", ""), error.get("data"))
        if "result" not in payload:
            raise RpcResponseError(f"Response to {method} has neither result nor error")
        return payload["result"]

    # ------------------------------------------------------------------
    # Typed helpers
    # ------------------------------------------------------------------

    def get_block_hash(self, number: Optional[int] = None) -> str:
        """Hash of the block at ``number``, or of the best block."""
        result = self.call("chain_getBlockHash", [] if number is None else [number])
        if result is None:
            raise RpcResponseError(f"Block {number} not found")
        return result

    def get_genesis_hash(self) -> str:
        return self.get_block_hash(0)

    def get_block(self, block_hash: Optional[str] = None) -> Dict[str, Any]:
        result = self.call("chain_getBlock", [] if block_hash is None else [block_hash])
        if result is None:
            raise RpcResponseError(f"Block {block_hash} not found")
        return result

    def get_header(self, block_hash: Optional[str] = None) -> Dict[str, Any]:
        result = self.call("chain_getHeader", [] if block_hash is None else [block_hash])
        if result is None:
            raise RpcResponseError(f"Header {block_hash} not found")
        return result

    def get_block_number(self, block_hash: Optional[str] = None) -> int:
        number = self.get_header(block_hash)["number"]
        return int(number, 16) if isinstance(number, str) else int(number)

    def get_metadata(self, block_hash: Optional[str] = None) -> bytes:
        """Runtime metadata at a block, as raw bytes."""
        result = self.call("state_getMetadata", [] if block_hash is None else [block_hash])
        try:
            return to_bytes(result)
        except InvalidValue as e:
            raise RpcResponseError(f"Metadata is not a hex string: {e}") from e

    def get_runtime_version(self, block_hash: Optional[str] = None) -> RuntimeVersion:
        result = self.call("state_getRuntimeVersion", [] if block_hash is None else [block_hash])
        try:
            return RuntimeVersion.model_validate(result)
        except ValidationError as e:
            raise RpcResponseError(f"Malformed runtime version: {e}") from e

    def get_account_next_index(self, address: str) -> int:
        """Next nonce of an account, including pending transactions."""
        return int(self.call("system_accountNextIndex", [address]))

