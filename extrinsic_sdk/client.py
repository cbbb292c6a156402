"""
ExtrinsicClient - build, sign and decode extrinsics against a live node.
"""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Optional

from cachetools import LRUCache

from extrinsic_sdk.address import encode_address
from extrinsic_sdk.config import DEFAULT_ERA_PERIOD, NetworkConfig
from extrinsic_sdk.era import Era
from extrinsic_sdk.exceptions import SigningError
from extrinsic_sdk.extrinsic.builder import ExtrinsicBuilder, extrinsic_hash
from extrinsic_sdk.extrinsic.decoder import ExtrinsicDecoder
from extrinsic_sdk.metadata.registry import Registry
from extrinsic_sdk.models import (
    ChainState, DecodedExtrinsic, DecodeOptions, NumericOutputMode,
    PreparedExtrinsic, SignedExtrinsicResult, UnsignedExtrinsicPayload
)
from extrinsic_sdk.rpc.client import JsonRpcClient
from extrinsic_sdk.signer.base import Signer, sign, verify
from extrinsic_sdk.utils import BytesLike, bytes_to_hex, to_bytes

# Registries keyed by (genesis hash, spec version), shared by all clients
_registry_cache: LRUCache = LRUCache(maxsize=16)
_registry_cache_lock = threading.RLock()


def get_cached_registry(genesis_hash: str, spec_version: int, metadata: BytesLike) -> Registry:
    """
    Get or build the registry of a runtime from the module-level cache.

    Args:
        genesis_hash: Genesis hash of the chain
        spec_version: Runtime spec version
        metadata: Metadata blob, parsed only on a cache miss

    Returns:
        Registry instance
    """
    key = (genesis_hash.lower(), spec_version)
    with _registry_cache_lock:
        registry = _registry_cache.get(key)
        if registry is None:
            registry = Registry.build(to_bytes(metadata), spec_version=spec_version)
            _registry_cache[key] = registry
        return registry


def clear_registry_cache() -> None:
    with _registry_cache_lock:
        _registry_cache.clear()


class ExtrinsicClient:
    """
    Client for preparing, signing and decoding extrinsics.

    This client handles:
    1. Reading chain state (genesis hash, best block, runtime version, metadata)
    2. Building signing payloads from named call arguments
    3. Signing with a KeyPair or a custom Signer and assembling the extrinsic
    4. Decoding extrinsics back into their calls

    Nothing is submitted to the chain.
    """

    def __init__(
        self,
        rpc_url: Optional[str] = None,
        signer: Optional[Signer] = None,
        era_period: int = DEFAULT_ERA_PERIOD,
        retry_count: int = 3,
        timeout: int = 30,
        rpc: Optional[JsonRpcClient] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the ExtrinsicClient

        Args:
            rpc_url: Node RPC endpoint URL (e.g., "https://rpc.polkadot.io")
            signer: KeyPair or custom signer used when none is passed per call
            era_period: Validity window of mortal transactions, in blocks
            retry_count: Number of retries for HTTP requests
            timeout: Timeout for HTTP requests in seconds
            rpc: Preconfigured RPC client (overrides rpc_url)
            logger: Optional logger instance to use for debug/info logging

        Raises:
            ValueError: If neither rpc_url nor rpc is provided, or the URL
                doesn't use https (unless it's localhost/127.0.0.1)
        """
        self.logger = logger or logging.getLogger(__name__)
        if rpc is None:
            if not rpc_url:
                raise ValueError("Either rpc_url or rpc must be provided")
            rpc = JsonRpcClient(rpc_url, retry_count=retry_count, timeout=timeout, logger=self.logger)
        self.rpc = rpc
        self.signer = signer
        self.era_period = era_period

    @classmethod
    def from_network(
        cls,
        network: str,
        rpc_url: Optional[str] = None,
        **kwargs: Any
    ) -> 'ExtrinsicClient':
        """
        Create a client for a network defined in networks.json.

        Args:
            network: Network name (e.g. "polkadot", "westend")
            rpc_url: Optional RPC URL override
            **kwargs: Passed to the constructor

        Raises:
            ValueError: If the network is unknown
        """
        url = NetworkConfig.get_rpc_url(network, rpc_url)
        return cls(rpc_url=url, **kwargs)

    # ------------------------------------------------------------------
    # Chain state
    # ------------------------------------------------------------------

    def fetch_chain_state(self, block_hash: Optional[str] = None) -> ChainState:
        """
        Read everything a transaction is built against.

        The best block hash is read first (unless given); the genesis hash,
        header, runtime version and metadata at that block are then read
        concurrently.

        Raises:
            NetworkError: If any read fails
        """
        if block_hash is None:
            block_hash = self.rpc.get_block_hash()

        with ThreadPoolExecutor(max_workers=4) as pool:
            genesis = pool.submit(self.rpc.get_genesis_hash)
            number = pool.submit(self.rpc.get_block_number, block_hash)
            version = pool.submit(self.rpc.get_runtime_version, block_hash)
            metadata = pool.submit(self.rpc.get_metadata, block_hash)
            state = ChainState(
                genesis_hash=genesis.result(),
                block_hash=block_hash,
                block_number=number.result(),
                runtime_version=version.result(),
                metadata=bytes_to_hex(metadata.result()),
            )

        self.logger.debug(
            f"Chain state at block #{state.block_number}: "
            f"spec_version={state.runtime_version.spec_version}"
        )
        return state

    def get_registry(self, state: ChainState) -> Registry:
        return get_cached_registry(state.genesis_hash, state.runtime_version.spec_version, state.metadata)

    # ------------------------------------------------------------------
    # Building and signing
    # ------------------------------------------------------------------

    def _signer(self, signer: Optional[Signer]) -> Signer:
        signer = signer or self.signer
        if signer is None:
            raise SigningError("No signer provided")
        return signer

    def signer_address(self, state: ChainState, signer: Optional[Signer] = None) -> str:
        """SS58 address of a signer, using the chain's prefix."""
        return encode_address(self._signer(signer).public_key, self.get_registry(state).ss58_prefix)

    def prepare(
        self,
        module: str,
        call: str,
        args: Dict[str, Any],
        address: str,
        nonce: Optional[int] = None,
        tip: int = 0,
        immortal: bool = False,
        state: Optional[ChainState] = None
    ) -> PreparedExtrinsic:
        """
        Build the signing payload of a call.

        Args:
            module: Pallet name (e.g. "Balances")
            call: Call name (e.g. "transfer_keep_alive")
            args: Call arguments by name
            address: SS58 address of the sender
            nonce: Account nonce; fetched with system_accountNextIndex if None
            tip: Tip in the smallest unit
            immortal: Build an immortal transaction instead of a mortal one
            state: Chain state to build against; fetched if None

        Returns:
            Prepared extrinsic with its signing payload
        """
        state = state or self.fetch_chain_state()
        registry = self.get_registry(state)
        builder = ExtrinsicBuilder(registry)
        encoded_call = builder.compose_call(module, call, args)

        if nonce is None:
            nonce = self.rpc.get_account_next_index(address)
            self.logger.debug(f"Fetched nonce {nonce} for {address}")

        era = Era.immortal() if immortal else Era.mortal(self.era_period, state.block_number)
        payload = UnsignedExtrinsicPayload(
            call=encoded_call,
            era=era,
            nonce=nonce,
            tip=tip,
            spec_version=state.runtime_version.spec_version,
            transaction_version=state.runtime_version.transaction_version,
            genesis_hash=state.genesis_hash,
            block_hash=None if immortal else state.block_hash,
        )
        return PreparedExtrinsic(
            payload=payload,
            signing_payload=builder.build_signing_payload(payload),
            signer_address=address,
            chain_state=state,
        )

    def sign_prepared(self, prepared: PreparedExtrinsic, signer: Optional[Signer] = None) -> SignedExtrinsicResult:
        """
        Sign a prepared extrinsic and assemble it.

        The assembled extrinsic is decoded again and its signature verified
        before it is returned.

        Raises:
            SigningError: If no signer is available or the signature does
                not verify
        """
        signer = self._signer(signer)
        signature = sign(prepared.signing_payload, signer)
        if not verify(prepared.signing_payload, signature, signer.public_key, signer.scheme):
            raise SigningError("Signature does not verify against the signer's public key")

        registry = self.get_registry(prepared.chain_state)
        payload = prepared.payload
        extrinsic = ExtrinsicBuilder(registry).assemble_signed(
            payload.call,
            prepared.signer_address,
            signature,
            payload.era,
            payload.nonce,
            payload.tip,
            scheme=signer.scheme,
        )
        decoded = ExtrinsicDecoder(registry).decode(extrinsic)
        return SignedExtrinsicResult(
            extrinsic=bytes_to_hex(extrinsic),
            hash=decoded.hash,
            decoded=decoded,
        )

    def create_signed_extrinsic(
        self,
        module: str,
        call: str,
        args: Dict[str, Any],
        signer: Optional[Signer] = None,
        nonce: Optional[int] = None,
        tip: int = 0,
        immortal: bool = False
    ) -> SignedExtrinsicResult:
        """
        Build, sign and assemble a call in one step.

        Returns:
            Signed extrinsic as 0x hex with its hash and decoded form
        """
        signer = self._signer(signer)
        state = self.fetch_chain_state()
        address = self.signer_address(state, signer)
        prepared = self.prepare(module, call, args, address, nonce=nonce, tip=tip, immortal=immortal, state=state)
        result = self.sign_prepared(prepared, signer)
        self.logger.info(f"Built extrinsic {module}.{call} from {address}: {result.hash}")
        return result

    # ------------------------------------------------------------------
    # Decoding
    # ------------------------------------------------------------------

    def decode(
        self,
        extrinsic: BytesLike,
        state: Optional[ChainState] = None,
        numeric_output: NumericOutputMode = NumericOutputMode.STRING
    ) -> DecodedExtrinsic:
        """Decode an extrinsic against the chain's current (or given) runtime."""
        state = state or self.fetch_chain_state()
        decoder = ExtrinsicDecoder(self.get_registry(state), DecodeOptions(numeric_output=numeric_output))
        return decoder.decode(extrinsic)

    @staticmethod
    def get_tx_hash(extrinsic: BytesLike) -> str:
        return extrinsic_hash(extrinsic)

