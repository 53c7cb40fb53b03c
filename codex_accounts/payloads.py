"""
Pydantic models for the ChatGPT usage and OAuth token endpoints.
"""
from typing import Optional, Union
from pydantic import BaseModel, field_validator


class RateLimitWindowPayload(BaseModel):
    """One rate limit window as reported by /wham/usage"""
    used_percent: Optional[Union[int, float]] = 0
    limit_window_seconds: Optional[Union[int, float]] = None
    reset_after_seconds: Optional[Union[int, float]] = None
    reset_at: Optional[Union[int, float]] = None


class RateLimitDetails(BaseModel):
    """Primary (short) and secondary (long) windows"""
    primary_window: Optional[RateLimitWindowPayload] = None
    secondary_window: Optional[RateLimitWindowPayload] = None


class CreditStatusDetails(BaseModel):
    """Credit balance block"""
    has_credits: Optional[bool] = False
    unlimited: Optional[bool] = False
    balance: Optional[str] = None

    @field_validator("balance", mode="before")
    @classmethod
    def _stringify_balance(cls, value):
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class RateLimitStatusPayload(BaseModel):
    """Response body of GET /wham/usage"""
    plan_type: Optional[str] = None
    rate_limit: Optional[RateLimitDetails] = None
    credits: Optional[CreditStatusDetails] = None


class RefreshTokenResponse(BaseModel):
    """Response body of the refresh_token grant"""
    id_token: Optional[str] = None
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
