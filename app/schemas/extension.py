"""Request schemas for the browser-extension endpoints."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ProductData(BaseModel):
    """Product details scraped from a dispensary page."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1)
    category: str = "unknown"
    brand: str | None = None
    strain_type: str | None = Field(None, alias="strainType")
    thc: str | None = None
    cbd: str | None = None
    terpenes: list[str] = Field(default_factory=list)
    source: str | None = None
    product_url: str | None = Field(None, alias="productUrl")
    raw_description: str | None = Field(None, alias="rawDescription")


class UserPreferences(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    experience_level: str = Field(..., alias="experienceLevel")
    desired_effects: list[str] = Field(default_factory=list, alias="desiredEffects")
    thc_sensitivity: str = Field("", alias="thcSensitivity")
    product_types: list[str] = Field(default_factory=list, alias="productTypes")


class InsightRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    product: ProductData
    preferences: UserPreferences | None = None
    installation_id: str = Field(..., min_length=1, alias="installationId")
    page_text: str | None = Field(None, alias="pageText")


class CoaRequest(BaseModel):
    """Certificate-of-analysis review request. Needs COA text or a COA URL."""

    model_config = ConfigDict(populate_by_name=True)

    product_name: str = Field(..., min_length=1, alias="productName")
    installation_id: str = Field(..., min_length=1, alias="installationId")
    coa_text: str | None = Field(None, alias="coaText")
    coa_url: str | None = Field(None, alias="coaUrl")
    claimed_thc: str | None = Field(None, alias="claimedThc")

    @model_validator(mode="after")
    def _require_coa_source(self) -> "CoaRequest":
        if not self.coa_text and not self.coa_url:
            raise ValueError("Must provide either coaUrl or coaText")
        return self
