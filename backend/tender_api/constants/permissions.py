"""Central role and operation definitions to avoid typos in permission checks.

Every role gate in the API is resolved through OPERATION_ROLES; route handlers never
compare role strings themselves. Extend cautiously; role codes are persisted on users
and embedded in issued tokens.
"""
from __future__ import annotations
from typing import Dict, FrozenSet, Optional, Tuple

SITE_SUPERVISOR = 'SITE_SUPERVISOR'
PROCUREMENT = 'PROCUREMENT'
FINANCE_PROCUREMENT = 'FINANCE_PROCUREMENT'
CHAIRMAN = 'CHAIRMAN'
CHAIRMAN_PA = 'CHAIRMAN_PA'

ALL_ROLES = (SITE_SUPERVISOR, PROCUREMENT, FINANCE_PROCUREMENT, CHAIRMAN, CHAIRMAN_PA)

PROCUREMENT_TIER = (PROCUREMENT, FINANCE_PROCUREMENT)
CHAIRMAN_TIER = (CHAIRMAN, CHAIRMAN_PA)

# Operation code -> roles allowed to invoke it
OPERATION_ROLES: Dict[str, Tuple[str, ...]] = {
    'ORDER.CREATE': (SITE_SUPERVISOR,),
    'ORDER.APPROVE_PROCUREMENT': PROCUREMENT_TIER,
    'ORDER.APPROVE_CHAIRMAN': CHAIRMAN_TIER,
    'ORDER.SOURCE': PROCUREMENT_TIER,
    'ORDER.SOURCED': PROCUREMENT_TIER,
    'ORDER.DELETE_ANY': CHAIRMAN_TIER,
    'APPROVAL.CREATE': PROCUREMENT_TIER,
    'APPROVAL.DECIDE': (CHAIRMAN,),
    'APPROVAL.READ_ALL': (CHAIRMAN,),
    'PROJECT.MANAGE': CHAIRMAN_TIER,
    'TEMPLATE.MANAGE': PROCUREMENT_TIER + CHAIRMAN_TIER,
}

# Generic status update allow-list: role -> target statuses (None = any status).
# SITE_SUPERVISOR entries only apply to orders the supervisor requested.
STATUS_UPDATE_TARGETS: Dict[str, Optional[FrozenSet[str]]] = {
    SITE_SUPERVISOR: frozenset({'CANCELLED'}),
    PROCUREMENT: frozenset({'SOURCING', 'SOURCED', 'IN_PROGRESS', 'COMPLETED'}),
    FINANCE_PROCUREMENT: frozenset({'SOURCING', 'SOURCED', 'IN_PROGRESS', 'COMPLETED'}),
    CHAIRMAN: None,
    CHAIRMAN_PA: None,
}

OWN_RECORD_ONLY = frozenset({SITE_SUPERVISOR})


def roles_for(operation: str) -> Tuple[str, ...]:
    try:
        return OPERATION_ROLES[operation]
    except KeyError:
        raise ValueError(f"Unknown operation code '{operation}'")
