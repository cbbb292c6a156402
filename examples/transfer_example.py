#!/usr/bin/env python3
"""
Build and sign a balance transfer without submitting it.
"""
import json
import logging
import os

from extrinsic_sdk import ExtrinsicClient, KeyPair


def main():
    """
    Demonstrate signing with the ExtrinsicClient.

    This example shows how to:
    1. Connect to a network from networks.json
    2. Load a signer from a secret URI
    3. Build, sign and decode a Balances.transfer_keep_alive call
    """
    logging.basicConfig(level=logging.INFO)

    # Read configuration from environment
    NETWORK = os.environ.get("NETWORK", "westend")
    SECRET_URI = os.environ.get("SECRET_URI", "//Alice")
    DEST = os.environ.get("DEST", "5FHneW46xGXgs5mUiveU4sbTyGBzmstUspZC92UhjJM694ty")
    AMOUNT = int(os.environ.get("AMOUNT", "1000000000"))

    signer = KeyPair.from_uri(SECRET_URI)
    client = ExtrinsicClient.from_network(NETWORK, signer=signer)

    result = client.create_signed_extrinsic(
        "Balances",
        "transfer_keep_alive",
        {"dest": DEST, "value": AMOUNT},
    )

    print(f"Extrinsic: {result.extrinsic}")
    print(f"Hash:      {result.hash}")
    print(json.dumps(result.decoded.model_dump(mode="json"), indent=2))


if __name__ == "__main__":
    main()
