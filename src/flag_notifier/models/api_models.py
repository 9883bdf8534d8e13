"""Response envelope models for the flags REST endpoint.

The endpoint wraps its payload in a success envelope:
    {"success": true, "data": {"flags": [...]}}
    {"success": false, "message": "..."}
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from flag_notifier.models.flag import FlagRecord


class FlagListData(BaseModel):
    """Payload of a successful flags-for-caller response."""

    flags: List[FlagRecord] = Field(default_factory=list)


class FlagListResponse(BaseModel):
    """Envelope returned by the flags-for-caller endpoint."""

    success: bool = Field(..., description="Whether the request succeeded")
    message: Optional[str] = Field(None, description="Error message on failure")
    data: Optional[FlagListData] = Field(None, description="Payload on success")
