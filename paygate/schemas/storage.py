from pydantic import BaseModel, ConfigDict, Field


class SignedUrlResponse(BaseModel):
    """Supabase Storage /object/sign response. signedURL is relative to /storage/v1."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    signed_url: str = Field("", alias="signedURL")
