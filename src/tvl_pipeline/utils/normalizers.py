import pandas as pd
from web3 import Web3


def normalize_bytes_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Convert all bytes-like columns in a DataFrame to hex strings using Web3.to_hex."""
    for col in df.columns:
        df[col] = df[col].apply(
            lambda x: (
                Web3.to_hex(x) if isinstance(x, (bytes, bytearray, memoryview)) else x
            )
        )
    return df


def normalize_address(address) -> str:
    """Lowercase 0x-prefixed hex form used as entity id for every address."""
    if isinstance(address, (bytes, bytearray, memoryview)):
        address = Web3.to_hex(bytes(address))
    if not isinstance(address, str) or not Web3.is_address(address):
        raise ValueError(f"Not an address: {address!r}")
    return Web3.to_checksum_address(address).lower()
