"""Decrypt an Ethereum JSON keystore and print its private key."""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from eth_account import Account
from web3 import Web3


class UsageError(Exception):
    pass


class KeystoreArgumentParser(argparse.ArgumentParser):
    """Raises on bad arguments instead of exiting with status 2."""

    def error(self, message):
        raise UsageError(message)


def decrypt_keystore(keystore_path: Path, password: str) -> str:
    if not keystore_path.is_file():
        raise FileNotFoundError("Keystore file does not exist")

    keystore = json.loads(keystore_path.read_text(encoding="utf-8"))
    private_key = Account.decrypt(keystore, password)
    return Web3.to_hex(private_key)


def main(argv: Optional[List[str]] = None) -> int:
    parser = KeystoreArgumentParser(description=__doc__)
    parser.add_argument("keystore", type=Path, help="Path to the encrypted keystore JSON")
    parser.add_argument("password", help="Keystore password")

    try:
        args = parser.parse_args(argv)
        private_key = decrypt_keystore(args.keystore, args.password)
    except (UsageError, OSError, ValueError, KeyError, TypeError) as exc:
        print(f"Failed to decrypt keystore: {exc}", file=sys.stderr)
        return 1

    print(private_key)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
