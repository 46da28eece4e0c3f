"""
Metaplex Module
===============
Mines Metaplex token-metadata accounts for a creator, tracks the current
holder of each supply-1 mint, and repairs malformed creator lists.

Components:
- layout.py: binary metadata / token account decoding and instruction encoding
- metadata_miner.py: creator-filtered discovery into the metadata store
- holder_resolver.py: sole-holder snapshot per mint
- rescue.py: creator-list remediation (sign + simulate)
- context.py: per-invocation ledger/store context
- config.py: program ids, retry and remediation parameters
- cli.py: command-line interface
"""

from collier.modules.metaplex.config import CollierConfig

__all__ = [
    'CollierConfig',
]
