#!/usr/bin/env python3
"""
Decode an extrinsic against the runtime of a live node.

Usage: decode_example.py 0x<extrinsic hex>
"""
import json
import os
import sys

from extrinsic_sdk import ExtrinsicClient, NumericOutputMode


def main():
    if len(sys.argv) != 2:
        print(__doc__)
        return

    client = ExtrinsicClient.from_network(os.environ.get("NETWORK", "polkadot"))
    decoded = client.decode(sys.argv[1], numeric_output=NumericOutputMode.NATIVE)

    print(f"{decoded.call.module}.{decoded.call.call} ({'signed' if decoded.signed else 'unsigned'})")
    if decoded.signed:
        print(f"From:  {decoded.address}")
        print(f"Nonce: {decoded.nonce}, tip: {decoded.tip}, era: {decoded.era}")
    print(json.dumps(decoded.call.args, indent=2, default=str))


if __name__ == "__main__":
    main()
