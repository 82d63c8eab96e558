"""
Generic response schemas
"""

from pydantic import BaseModel, Field
from typing import Any, Optional, Dict
from datetime import datetime

from flashmob.core.clock import utcnow


class ErrorDetail(BaseModel):
    """Error detail schema"""
    code: str
    message: str
    details: Optional[Dict[str, Any]] = {}


class ErrorResponse(BaseModel):
    """Error envelope returned for every handled failure"""
    success: bool = False
    error: ErrorDetail
    timestamp: datetime = Field(default_factory=utcnow)


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    checks: Dict[str, bool] = {}
    version: str
    timestamp: datetime = Field(default_factory=utcnow)


class MessageResponse(BaseModel):
    """Simple message response"""
    success: bool = True
    message: str
    timestamp: datetime = Field(default_factory=utcnow)
