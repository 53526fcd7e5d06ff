from typing import Optional
from leave_lottery.core.security import verify_token

def decode_access_token(token: str) -> Optional[dict]:
    """Decode an access token; None if it is invalid, expired or of another type"""
    payload = verify_token(token)
    if payload is None:
        return None

    if payload.get("type") != "access":
        return None

    if not payload.get("sub"):
        return None

    return payload
