"""
FAIRLENS — Provably-Fair Scheme Registry

Each operator scheme exposes: compute_hash(), hash_to_float(), verify_commitment().
The registry is built once at import and is read-only afterwards.

Usage:
    from pf_engine.schemes import get_scheme
    scheme = get_scheme("stake")
    digest = scheme.compute_hash(commitment)
"""

import logging
from types import MappingProxyType

from config.fairness_schema import SchemeName
from pf_engine.schemes.base import BaseScheme, MissingSeedError, SeedCommitment
from pf_engine.schemes.generic import GenericScheme
from pf_engine.schemes.stake import StakeScheme
from pf_engine.schemes.bc_game import BCGameScheme

logger = logging.getLogger("fairlens.schemes")

SCHEMES = MappingProxyType({
    SchemeName.GENERIC: GenericScheme(),
    SchemeName.STAKE: StakeScheme(),
    SchemeName.BC_GAME: BCGameScheme(),
})

SCHEME_NAMES = [s.value for s in SCHEMES]


def get_scheme(name=SchemeName.GENERIC) -> BaseScheme:
    """Look up a scheme by name. Unknown names fall back to generic."""
    try:
        return SCHEMES[SchemeName(name)]
    except ValueError:
        logger.debug(f"Unknown scheme {name!r}, using generic")
        return SCHEMES[SchemeName.GENERIC]


__all__ = [
    "BaseScheme", "MissingSeedError", "SeedCommitment",
    "GenericScheme", "StakeScheme", "BCGameScheme",
    "SCHEMES", "SCHEME_NAMES", "get_scheme",
]
