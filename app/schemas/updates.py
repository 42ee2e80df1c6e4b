"""
Partial updates to a user record, as explicit variants.

A request produces a list of these from the fields it actually carries: a
missing field produces nothing, while SetPhone(None) / SetCompany(None) clear
the column.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class SetName:
    value: str


@dataclass(frozen=True)
class SetEmail:
    value: str


@dataclass(frozen=True)
class SetPhone:
    value: str | None


@dataclass(frozen=True)
class SetCompany:
    value: str | None


UserFieldUpdate = SetName | SetEmail | SetPhone | SetCompany
