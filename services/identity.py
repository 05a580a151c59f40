"""
Caller identity checks shared by services and routes.
"""

from typing import Optional

from exceptions import AuthenticationError


def require_identity(sme_id: Optional[str]) -> str:
    """
    Return the caller's SME id.

    Raises:
        AuthenticationError: If no identity was provided
    """
    if not sme_id:
        raise AuthenticationError()
    return sme_id
