"""Data models for blogfront."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _CMSModel(BaseModel):
    """Base for models parsed from CMS JSON (camelCase on the wire)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Tag(_CMSModel):
    """A tag attached to an article."""

    id: int
    name: str


class Media(_CMSModel):
    """An uploaded media file such as an article thumbnail."""

    id: int | None = None
    url: str
    alternative_text: str | None = Field(default=None, alias="alternativeText")
    width: int | None = None
    height: int | None = None


class Article(_CMSModel):
    """A blog article as returned by the CMS."""

    id: int
    document_id: str = Field(alias="documentId")
    title: str
    content: str | None = None
    tags: list[Tag] = Field(default_factory=list)
    thumbnail: Media | None = None
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")
    published_at: datetime | None = Field(default=None, alias="publishedAt")

    @field_validator("tags", mode="before")
    @classmethod
    def _null_tags(cls, value: object) -> object:
        return [] if value is None else value
