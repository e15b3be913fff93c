"""Image-name derivation from file names and stems.

A missing token leaves the value unchanged. Pass
``strict=True`` to get a ValueError instead.
"""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


def remove_token(value: str, token: str, strict: bool = False) -> str:
    """Remove the first occurrence of ``token`` anywhere in ``value``.

    Raises:
        ValueError: If strict and ``token`` does not occur in ``value``.
    """
    if token and token in value:
        return value.replace(token, "", 1)
    if strict:
        raise ValueError(f"{value!r} does not contain {token!r}")
    logger.debug("Token %r not found in %r, keeping name", token, value)
    return value
