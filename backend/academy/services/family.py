"""Family accounts.

A guardian registers siblings under plus-addressed aliases of one mailbox
(``asha@example.com``, ``asha+student2@example.com``, ...). Every student whose
email reduces to the same mailbox belongs to the same family.
"""
from __future__ import annotations

from collections.abc import Iterable
from typing import Any


def family_key(email: str) -> str:
    local, _, domain = email.strip().lower().rpartition("@")
    if not local:
        return email.strip().lower()
    return f"{local.split('+', 1)[0]}@{domain}"


def family_members(email: str, users: Iterable[Any]) -> list[Any]:
    key = family_key(email)
    return [user for user in users if family_key(user.email) == key]


def next_family_email(email: str, taken: Iterable[str]) -> str:
    """Smallest free ``+studentN`` alias of the family mailbox, starting at 2."""
    local, _, domain = family_key(email).partition("@")
    taken = {item.strip().lower() for item in taken}
    index = 2
    while f"{local}+student{index}@{domain}" in taken:
        index += 1
    return f"{local}+student{index}@{domain}"
