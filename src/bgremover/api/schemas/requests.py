"""Request schemas for the API."""

from pydantic import BaseModel, Field


class RemoveBackgroundRequest(BaseModel):
    """Image to process."""
    image_uri: str = Field(
        ...,
        min_length=1,
        description="Local path, file:// URI or http(s) URL of the image",
    )
