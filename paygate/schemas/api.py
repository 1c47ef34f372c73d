from pydantic import BaseModel, ConfigDict, Field


class VerifyResponse(BaseModel):
    ok: bool


class PublicConfig(BaseModel):
    """Non-secret client configuration for catalog browsing."""

    model_config = ConfigDict(populate_by_name=True)

    public_api_url: str = Field("", serialization_alias="publicApiUrl")
    public_anon_key: str = Field("", serialization_alias="publicAnonKey")
