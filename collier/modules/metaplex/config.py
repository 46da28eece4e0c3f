"""
Collier Configuration
=====================
Program ids, retry discipline and remediation parameters.
"""

from dataclasses import dataclass

from spl.token.constants import TOKEN_PROGRAM_ID as SPL_TOKEN_PROGRAM_ID

from collier.shared.infrastructure.retry import RetryPolicy


@dataclass
class CollierConfig:
    """Configuration for mining, holder resolution and creator rescue."""

    # Programs
    METADATA_PROGRAM_ID: str = "metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s"
    TOKEN_PROGRAM_ID: str = str(SPL_TOKEN_PROGRAM_ID)

    # Retry discipline (per remote call)
    MAX_RETRY_ATTEMPTS: int = 5
    RETRY_BASE_DELAY_S: float = 0.5
    RETRY_MAX_DELAY_S: float = 8.0
    RETRY_JITTER_S: float = 0.25

    # Rate Limiting
    RPC_DELAY_MS: int = 0  # Delay between per-record RPC calls

    # Creator Rescue
    EXPECTED_CREATOR_COUNT: int = 4  # Records with any other cardinality are skipped
    OPERATOR_SHARE: int = 100
    DRY_RUN_DEFAULT: bool = True  # Simulate only unless --live

    def retry_policy(self, **overrides) -> RetryPolicy:
        params = dict(
            max_attempts=self.MAX_RETRY_ATTEMPTS,
            base_delay_s=self.RETRY_BASE_DELAY_S,
            max_delay_s=self.RETRY_MAX_DELAY_S,
            jitter_s=self.RETRY_JITTER_S,
        )
        params.update(overrides)
        return RetryPolicy(**params)
