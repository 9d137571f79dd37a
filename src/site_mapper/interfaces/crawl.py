"""
Crawl data model shared by the crawler, the screenshot engine and the API.

Field names are snake_case in Python and camelCase on the wire.
"""

from enum import Enum
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..utils.url_utils import is_http_url

MIN_DEPTH, MAX_DEPTH, DEFAULT_DEPTH = 1, 5, 3
MIN_PAGES, MAX_PAGES, DEFAULT_PAGES = 10, 500, 50


class CrawlMode(str, Enum):
    STANDARD = "standard"
    FEEDBACK_ONLY = "feedback-only"
    SCREENSHOT_ONLY = "screenshot-only"


class RefreshMode(str, Enum):
    FULL = "full"
    SMART = "smart"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _clamp(value: Any, low: int, high: int, default: int) -> int:
    if value is None:
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"expected an integer, got {value!r}")
    return min(max(number, low), high)


class CrawlConfig(CamelModel):
    """Immutable input to one crawl run."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    url: str = Field(..., description="Root URL to crawl", examples=["https://example.com"])
    max_depth: int = Field(default=DEFAULT_DEPTH, description="Clamped to [1, 5]")
    max_pages: int = Field(default=DEFAULT_PAGES, description="Clamped to [10, 500]")
    http_user: Optional[str] = None
    http_password: Optional[str] = Field(default=None, exclude=True, repr=False)
    exclude_patterns: List[str] = Field(default_factory=list, examples=[["/blog/*"]])
    include_urls: List[str] = Field(default_factory=list)
    site_id: Optional[str] = None
    mode: Optional[RefreshMode] = None
    crawl_mode: CrawlMode = CrawlMode.STANDARD

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("URL is required")
        if not is_http_url(v):
            raise ValueError("Invalid URL format: only absolute http and https URLs are supported")
        return v

    @field_validator("max_depth", mode="before")
    @classmethod
    def clamp_depth(cls, v: Any) -> int:
        return _clamp(v, MIN_DEPTH, MAX_DEPTH, DEFAULT_DEPTH)

    @field_validator("max_pages", mode="before")
    @classmethod
    def clamp_pages(cls, v: Any) -> int:
        return _clamp(v, MIN_PAGES, MAX_PAGES, DEFAULT_PAGES)

    @field_validator("exclude_patterns", "include_urls", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return v or []

    @property
    def http_credentials(self) -> Optional[dict]:
        if not self.http_user:
            return None
        return {"username": self.http_user, "password": self.http_password or ""}

    @property
    def uses_smart_reuse(self) -> bool:
        return bool(self.site_id) and self.mode != RefreshMode.FULL


class PageInfo(CamelModel):
    """One successfully fetched page."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    url: str
    title: str
    depth: int = Field(..., ge=0)
    parent_url: Optional[str] = None
    links: List[str] = Field(default_factory=list)
    internal_links: List[str] = Field(default_factory=list)
    external_links: List[str] = Field(default_factory=list)
    status_code: int = 0
    error: Optional[str] = None


class ScreenshotResult(CamelModel):
    """Outcome of rendering one URL to disk."""

    url: str
    thumbnail_filename: str = ""
    full_page_filename: str = ""
    success: bool
    cached: bool = False
    error: Optional[str] = None


class CrawlProgress(CamelModel):
    found: int = 0
    crawled: int = 0
    screenshotted: int = 0


class CrawlDiff(CamelModel):
    new_pages: List[str] = Field(default_factory=list)
    deleted_pages: List[str] = Field(default_factory=list)
    modified_pages: List[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.new_pages or self.deleted_pages or self.modified_pages)


class CachedPage(CamelModel):
    """A page as recorded by a previous crawl of the same site."""

    title: str = ""
    internal_links: List[str] = Field(default_factory=list)
    thumbnail_url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("thumbnailUrl", "thumbnailRef", "thumbnail_url"),
        serialization_alias="thumbnailUrl",
    )

    @field_validator("title", mode="before")
    @classmethod
    def none_title(cls, v: Any) -> str:
        return v or ""

    @field_validator("internal_links", mode="before")
    @classmethod
    def none_links(cls, v: Any) -> List[str]:
        return v or []
