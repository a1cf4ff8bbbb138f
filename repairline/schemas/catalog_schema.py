"""Tenant-scoped catalog records: FAQs and tenant configuration."""

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator


class FAQRecord(BaseModel):
    """A canned question/answer pair with its trigger keywords."""

    id: str
    question: str = ""
    answer: str = Field(default="", validation_alias=AliasChoices("answer", "response"))
    keywords: str = ""
    usage_count: int = 0
    audio_url: Optional[str] = None
    category: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> str:
        return str(value)

    @field_validator("usage_count", mode="before")
    @classmethod
    def _default_usage(cls, value: Any) -> int:
        return value or 0

    @field_validator("question", "answer", "keywords", mode="before")
    @classmethod
    def _default_text(cls, value: Any) -> str:
        return value or ""

    def keyword_list(self) -> list[str]:
        """Split the comma-separated keyword column into clean lower-cased phrases."""
        return [k.strip().lower() for k in self.keywords.split(",") if k.strip()]


class TenantConfig(BaseModel):
    """Per-tenant settings read from the ``tenant_configs`` table."""

    organization_id: Optional[str] = None
    business_name: Optional[str] = None
    voice_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("voice_id", "elevenlabs_voice_id")
    )
