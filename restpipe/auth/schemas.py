"""
Auth API schemas (response models).
"""

from __future__ import annotations

from pydantic import BaseModel


class TokenResponse(BaseModel):
    token: str
