"""
Authentication dependencies for FastAPI routes.

Extracts caller identity from the X-User-Id header (set by the frontend,
which owns sign-in).  Every stored resource belongs to exactly one caller.
"""
from __future__ import annotations

from typing import Optional

from fastapi import Header, HTTPException, status


async def get_current_user_id(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
) -> str:
    """Extract the authenticated user ID from the request header. Raises 401 if missing."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header.",
        )
    return x_user_id.strip()
