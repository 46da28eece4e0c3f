import os
from dotenv import load_dotenv

# Load Environment Variables from the working directory .env
load_dotenv(os.path.join(os.getcwd(), ".env"))


def _split_urls(raw: str) -> list:
    return [u.strip() for u in raw.split(",") if u.strip()]


class Settings:
    # ═══════════════════════════════════════════════════════════════════
    # COLLIER CONFIGURATION (Environment-Based)
    # ═══════════════════════════════════════════════════════════════════

    # --- Console ---
    SILENT_MODE = os.getenv("COLLIER_SILENT", "0") == "1"

    # --- Paths ---
    DB_PATH = os.getenv("COLLIER_DB_PATH", "collier.db")
    LOG_DIR = os.path.abspath(os.getenv("COLLIER_LOG_DIR", "logs"))

    # --- RPC ---
    RPC_URL = os.getenv("RPC_URL", "https://api.mainnet-beta.solana.com")
    RPC_FALLBACK_URLS = _split_urls(os.getenv("RPC_FALLBACK_URLS", ""))
    RPC_TIMEOUT_S = float(os.getenv("RPC_TIMEOUT_S", "500"))  # getProgramAccounts can be slow
