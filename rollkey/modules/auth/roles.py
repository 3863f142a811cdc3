"""API key role bit flags and helpers for the keyinfo wire format."""

from enum import IntFlag
from typing import Any, Dict, Iterable, List, Union


class Role(IntFlag):
    """Roles an API key can hold. Combined as a bit mask."""

    SCRAPER = 1
    INFORMATION_OBTAINER = 2
    CONTROLLER = 4
    ADMIN = 8


ROLE_DESCRIPTIONS: Dict[Role, str] = {
    Role.SCRAPER: "Can insert scraped data",
    Role.INFORMATION_OBTAINER: "Can obtain scraped information",
    Role.CONTROLLER: "Can control the server",
    Role.ADMIN: "Admin (currently unused)",
}

ALL_ROLES: List[Role] = list(ROLE_DESCRIPTIONS)

# The dashboard needs to both read information and control the server
DASHBOARD_ROLE = Role.INFORMATION_OBTAINER | Role.CONTROLLER


def contains_all(mask: int, required: int) -> bool:
    return mask & required == required


def contains_some(mask: int, required: int) -> bool:
    return mask & required > 0


def role_infos(mask: int) -> List[Dict[str, Any]]:
    """Expand a role mask into the keyinfo ``roles`` list."""
    return [
        {"role": int(role), "description": ROLE_DESCRIPTIONS[role]}
        for role in ALL_ROLES
        if mask & role
    ]


def roles_from_payload(roles: Iterable[Dict[str, Any]]) -> Role:
    """OR together the ``role`` bits of a keyinfo ``roles`` list."""
    mask = Role(0)
    for entry in roles or []:
        try:
            mask |= Role(int(entry.get("role", 0)) & sum(ALL_ROLES))
        except (TypeError, ValueError, AttributeError):
            continue
    return mask


def parse_roles(value: Union[str, int]) -> Role:
    """
    Parse a role mask from configuration.

    Accepts an integer mask ("6"), or role names joined by "|" or "+"
    ("controller|information_obtainer"). Names are case-insensitive.

    Raises:
        ValueError: If a role name is unknown
    """
    if isinstance(value, int):
        return Role(value)

    value = value.strip()
    if not value:
        return Role(0)
    if value.isdigit():
        return Role(int(value))

    mask = Role(0)
    for name in value.replace("+", "|").split("|"):
        name = name.strip().upper()
        if not name:
            continue
        try:
            mask |= Role[name]
        except KeyError:
            raise ValueError(
                f"Unknown role '{name.lower()}'. "
                f"Valid roles: {', '.join(r.name.lower() for r in ALL_ROLES)}"
            ) from None
    return mask
