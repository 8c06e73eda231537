"""Pydantic schemas for the upload endpoints."""

from pydantic import BaseModel


class SaveResponse(BaseModel):
    """Response after storing uploaded archives."""

    success: bool = True
    saved: list[str] = []


class RemoveResponse(BaseModel):
    """Response after a remove call. Always successful; names that were
    not present are simply absent from `removed`."""

    success: bool = True
    removed: list[str] = []
