import json
import os

import base58
from solders.keypair import Keypair

from collier.shared.system.errors import CredentialError
from collier.shared.system.logging import Logger


def load_keypair_file(path: str) -> Keypair:
    """
    Load the operator keypair from a local key file.

    Accepts the Solana CLI format (JSON array of 64 secret-key bytes) or a
    single base58 string as exported by Phantom.

    Raises:
        CredentialError: file missing, unreadable or not a valid keypair
    """
    if not path or not os.path.isfile(path):
        raise CredentialError(f"Key file not found: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = f.read().strip()
    except (OSError, UnicodeDecodeError) as e:
        raise CredentialError(f"Cannot read key file {path}: {e}") from e

    try:
        if raw.startswith("["):
            secret_bytes = bytes(json.loads(raw))
        else:
            secret_bytes = base58.b58decode(raw)
        keypair = Keypair.from_bytes(secret_bytes)
    except (ValueError, TypeError) as e:
        raise CredentialError(f"Invalid key format in {path}: {e}") from e

    pubkey = str(keypair.pubkey())
    Logger.info(f"[WALLET] Loaded update authority: {pubkey[:8]}...{pubkey[-4:]}")
    return keypair
