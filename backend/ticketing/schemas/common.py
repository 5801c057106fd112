"""
Response envelope shared by every endpoint.
"""

from typing import Generic, Optional, TypeVar
from pydantic import BaseModel

T = TypeVar("T")


class ServiceResponse(BaseModel, Generic[T]):
    data: Optional[T] = None
    message: str = ""
    success: bool = True


class ErrorResponse(BaseModel):
    data: None = None
    message: str
    success: bool = False
    error: str


class Address(BaseModel):
    address_line1: str = ""
    address_line2: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
