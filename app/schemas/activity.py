from pydantic import BaseModel, Field
from typing import Any, Dict, Optional
from datetime import datetime


class ActivityResponse(BaseModel):
    """One audit entry from the caller's feed"""
    id: str
    user_id: str
    company_id: str
    type: str
    description: str
    # Stored on the ORM object as ``details``
    metadata: Optional[Dict[str, Any]] = Field(None, validation_alias="details")
    timestamp: datetime

    class Config:
        from_attributes = True
