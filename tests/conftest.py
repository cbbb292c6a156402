"""
Pytest fixtures for the extrinsic SDK tests.
"""
import pytest

from extrinsic_sdk._rate_limited_log import reset_rate_limits
from extrinsic_sdk.client import clear_registry_cache
from extrinsic_sdk.config import NetworkConfig
from extrinsic_sdk.metadata.registry import Registry
from extrinsic_sdk.signer.keypair import KeyPair
from extrinsic_sdk.utils import bytes_to_hex
from tests.test_helpers.metadata_builder import SPEC_VERSION, TRANSACTION_VERSION, build_metadata

TEST_RPC_URL = "https://rpc.example.com"
GENESIS_HASH = "0x" + "11" * 32
BLOCK_HASH = "0x" + "22" * 32
BLOCK_NUMBER = 100

# Well-known development accounts
ALICE_PUBLIC_KEY = bytes.fromhex("d43593c715fdd31c61141abd04a99fd6822c8558854ccde39a5684e7a56da27d")
ALICE_ADDRESS = "5GrwvaEF5zXb26Fz9rcQpDWS57CtERHpNehXCPcNoHGKutQY"
BOB_PUBLIC_KEY = bytes.fromhex("8eaf04151687736326c9fea17e25fc5287613693c912909cb226aa4794f26a48")
BOB_ADDRESS = "5FHneW46xGXgs5mUiveU4sbTyGBzmstUspZC92UhjJM694ty"

RUNTIME_VERSION = {
    "specName": "node",
    "implName": "substrate-node",
    "authoringVersion": 10,
    "specVersion": SPEC_VERSION,
    "implVersion": 0,
    "transactionVersion": TRANSACTION_VERSION,
    "apis": [],
}


@pytest.fixture(autouse=True)
def _reset_module_state():
    """Module-level caches must not leak between tests."""
    clear_registry_cache()
    reset_rate_limits()
    NetworkConfig._networks_cache = None
    yield
    clear_registry_cache()
    reset_rate_limits()
    NetworkConfig._networks_cache = None


@pytest.fixture(scope="session")
def metadata_bytes():
    return build_metadata()


@pytest.fixture(scope="session")
def metadata_hex(metadata_bytes):
    return bytes_to_hex(metadata_bytes)


@pytest.fixture
def registry(metadata_bytes):
    return Registry.build(metadata_bytes, spec_version=SPEC_VERSION)


@pytest.fixture(scope="session")
def alice():
    return KeyPair.from_uri("//Alice")


@pytest.fixture(scope="session")
def ed25519_keypair():
    return KeyPair.from_seed(bytes(range(32)), scheme="ed25519")


@pytest.fixture
def rpc_responses(metadata_hex):
    """Result of each RPC method served by the mocked node."""
    return {
        "chain_getBlockHash": lambda params: GENESIS_HASH if params == [0] else BLOCK_HASH,
        "chain_getHeader": lambda params: {
            "parentHash": "0x" + "33" * 32,
            "number": hex(BLOCK_NUMBER),
            "stateRoot": "0x" + "44" * 32,
            "extrinsicsRoot": "0x" + "55" * 32,
            "digest": {"logs": []},
        },
        "state_getRuntimeVersion": lambda params: RUNTIME_VERSION,
        "state_getMetadata": lambda params: metadata_hex,
        "system_accountNextIndex": lambda params: 7,
    }


@pytest.fixture
def mock_node(requests_mock, rpc_responses):
    """A JSON-RPC node at TEST_RPC_URL answering from ``rpc_responses``."""

    def _answer(request, context):
        body = request.json()
        handler = rpc_responses.get(body["method"])
        if handler is None:
            return {
                "jsonrpc": "2.0",
                "id": body["id"],
                "error": {"code": -32601, "message": "Method not found"},
            }
        return {"jsonrpc": "2.0", "id": body["id"], "result": handler(body["params"])}

    requests_mock.post(TEST_RPC_URL, json=_answer)
    return requests_mock
