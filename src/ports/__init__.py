"""Port interfaces - Layer boundary contracts.

    OrgResolver - user -> organization membership lookup (request pipeline)

Adapters live in src/infra; the gateway depends only on this package.
"""

from src.ports.org_resolver import OrgFound, OrgLookup, OrgNotFound, OrgResolver

__all__ = [
    "OrgFound",
    "OrgLookup",
    "OrgNotFound",
    "OrgResolver",
]
