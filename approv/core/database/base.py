"""
Base database models and utilities.

This module provides the foundational database components used across
all entities in the persistence layer using SQLModel.
"""

from __future__ import annotations

import secrets
import string

from pydantic import ConfigDict
from sqlmodel import SQLModel

_ID_ALPHABET = string.ascii_lowercase + string.digits
ID_LENGTH = 25


def generate_id() -> str:
    """Return a collision-resistant, URL-safe identifier (``c`` + 24 ``[a-z0-9]``).

    Used for primary keys, approval tokens and client portal tokens.
    """
    return "c" + "".join(secrets.choice(_ID_ALPHABET) for _ in range(ID_LENGTH - 1))


class Base(SQLModel):
    """Base class for all SQLModel entities."""

    model_config = ConfigDict(arbitrary_types_allowed=True)
