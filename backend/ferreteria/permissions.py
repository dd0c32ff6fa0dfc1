# Overview: Role and screen definitions; role gating is a pure lookup.

"""
Screen access by role.

Each dashboard screen is guarded by one blueprint. A role may open a screen
only if the screen is listed for it here. A user without a role opens
nothing.
"""

from __future__ import annotations


class Role:
    MANAGER = "gerente"
    ACCOUNTANT = "contador"
    CASHIER = "cajero"
    WAREHOUSE = "bodeguero"


ROLES = (Role.MANAGER, Role.ACCOUNTANT, Role.CASHIER, Role.WAREHOUSE)


# (screen, label, roles allowed) in navigation order
SCREEN_DEFINITIONS = [
    ("dashboard", "Dashboard", ROLES),
    ("users", "Usuarios", (Role.MANAGER,)),
    ("products", "Productos", (Role.MANAGER, Role.WAREHOUSE)),
    ("inventory", "Inventario", (Role.MANAGER, Role.WAREHOUSE)),
    ("sales", "Ventas", (Role.MANAGER, Role.CASHIER)),
    ("accounting", "Contabilidad", (Role.MANAGER, Role.ACCOUNTANT)),
    ("suppliers", "Proveedores", (Role.MANAGER, Role.WAREHOUSE)),
    ("logs", "Historial", (Role.MANAGER,)),
    ("alerts", "Alertas", (Role.MANAGER, Role.WAREHOUSE)),
]

SCREEN_ROLES: dict[str, frozenset[str]] = {
    screen: frozenset(roles) for screen, _label, roles in SCREEN_DEFINITIONS
}

# Roles that may see who registered each sale
SALE_AUDITOR_ROLES = frozenset({Role.MANAGER, Role.ACCOUNTANT})


class UnknownScreenError(KeyError):
    """Raised when a screen name is not part of the navigation."""


def is_known_role(role: str | None) -> bool:
    return role in ROLES


def can_access(role: str | None, screen: str) -> bool:
    if screen not in SCREEN_ROLES:
        raise UnknownScreenError(screen)
    if role is None:
        return False
    return role in SCREEN_ROLES[screen]


def screens_for(role: str | None) -> list[dict]:
    """Navigation entries visible to a role, in display order."""
    if role is None:
        return []
    return [
        {"screen": screen, "label": label}
        for screen, label, roles in SCREEN_DEFINITIONS
        if role in roles
    ]
