from __future__ import annotations

import uuid
from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Discriminator, EmailStr, Field, Tag, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Base for every wire schema. Fields are snake_case in Python and camelCase
    on the wire; requests may use either spelling.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class OpenCamelModel(CamelModel):
    """Content-tree nodes keep keys they do not know about."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True, extra="allow")


# ====================================================================================
# --- Content Tree: sections -> blocks, blocks tagged by their 'type'. ---
# ====================================================================================
class Animation(OpenCamelModel):
    type: Literal["fade", "slide", "scale", "none"] = "none"
    duration: Optional[float] = None
    delay: Optional[float] = None


class Background(OpenCamelModel):
    type: Literal["color", "gradient", "image"]
    value: str


class TextContent(OpenCamelModel):
    text: str = ""
    tag: str = "p"


class ImageContent(OpenCamelModel):
    url: str = ""
    alt: Optional[str] = None


class VideoContent(OpenCamelModel):
    url: str = ""
    autoplay: Optional[bool] = None
    poster: Optional[str] = None


class ChartContent(OpenCamelModel):
    chart_type: str = "bar"
    data: Any = None


class CtaContent(OpenCamelModel):
    title: Optional[str] = None
    subtitle: Optional[str] = None
    description: Optional[str] = None
    price: Optional[str] = None
    regular_price: Optional[str] = None
    highlighted: Optional[bool] = None
    features: Optional[List[str]] = None
    button_text: Optional[str] = None
    button_link: Optional[str] = None


class FormContent(OpenCamelModel):
    form_fields: List[Dict[str, Any]] = Field(default_factory=list, alias="fields")
    submit_label: Optional[str] = None


class EmbedContent(OpenCamelModel):
    url: Optional[str] = None
    html: Optional[str] = None


class LogoContent(OpenCamelModel):
    url: str = ""
    alt: Optional[str] = None


class StatItem(OpenCamelModel):
    value: Union[str, int, float]
    label: str
    highlight: Optional[bool] = None


class StatsContent(OpenCamelModel):
    stats: List[StatItem] = Field(default_factory=list)


class QuoteContent(OpenCamelModel):
    text: str = ""
    author: Optional[str] = None
    role: Optional[str] = None


class BlockBase(OpenCamelModel):
    id: str
    style: Optional[Dict[str, Any]] = None
    animation: Optional[Animation] = None


class TextBlock(BlockBase):
    type: Literal["text"] = "text"
    content: TextContent = Field(default_factory=TextContent)


class ImageBlock(BlockBase):
    type: Literal["image"] = "image"
    content: ImageContent = Field(default_factory=ImageContent)


class VideoBlock(BlockBase):
    type: Literal["video"] = "video"
    content: VideoContent = Field(default_factory=VideoContent)


class ChartBlock(BlockBase):
    type: Literal["chart"] = "chart"
    content: ChartContent = Field(default_factory=ChartContent)


class CtaBlock(BlockBase):
    type: Literal["cta"] = "cta"
    content: CtaContent = Field(default_factory=CtaContent)


class FormBlock(BlockBase):
    type: Literal["form"] = "form"
    content: FormContent = Field(default_factory=FormContent)


class EmbedBlock(BlockBase):
    type: Literal["embed"] = "embed"
    content: EmbedContent = Field(default_factory=EmbedContent)


class LogoBlock(BlockBase):
    type: Literal["logo"] = "logo"
    content: LogoContent = Field(default_factory=LogoContent)


class StatsBlock(BlockBase):
    type: Literal["stats"] = "stats"
    content: StatsContent = Field(default_factory=StatsContent)


class QuoteBlock(BlockBase):
    type: Literal["quote"] = "quote"
    content: QuoteContent = Field(default_factory=QuoteContent)


class UnknownBlock(BlockBase):
    """A block kind this server does not model; the payload is kept verbatim."""
    type: str
    content: Any = None


BLOCK_TYPES = {
    "text": TextBlock,
    "image": ImageBlock,
    "video": VideoBlock,
    "chart": ChartBlock,
    "cta": CtaBlock,
    "form": FormBlock,
    "embed": EmbedBlock,
    "logo": LogoBlock,
    "stats": StatsBlock,
    "quote": QuoteBlock,
}


def block_kind(value: Any) -> str:
    """Discriminator: the block's 'type', or 'unknown' for kinds not in BLOCK_TYPES."""
    kind = value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    if kind in BLOCK_TYPES and not isinstance(value, UnknownBlock):
        return kind
    return "unknown"


Block = Annotated[
    Union[
        Annotated[TextBlock, Tag("text")],
        Annotated[ImageBlock, Tag("image")],
        Annotated[VideoBlock, Tag("video")],
        Annotated[ChartBlock, Tag("chart")],
        Annotated[CtaBlock, Tag("cta")],
        Annotated[FormBlock, Tag("form")],
        Annotated[EmbedBlock, Tag("embed")],
        Annotated[LogoBlock, Tag("logo")],
        Annotated[StatsBlock, Tag("stats")],
        Annotated[QuoteBlock, Tag("quote")],
        Annotated[UnknownBlock, Tag("unknown")],
    ],
    Discriminator(block_kind),
]


class Section(OpenCamelModel):
    id: str
    title: Optional[str] = None
    layout: Literal["single", "two-column", "three-column", "hero", "split"] = "single"
    background: Optional[Background] = None
    style: Optional[Dict[str, Any]] = None
    blocks: List[Block] = Field(default_factory=list)


class ContentMetadata(OpenCamelModel):
    title: str = ""
    description: Optional[str] = None
    author: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class ContentTree(OpenCamelModel):
    """The presentation body rendered by the scrollytelling viewer."""
    metadata: ContentMetadata = Field(default_factory=ContentMetadata)
    sections: List[Section] = Field(default_factory=list)

    def to_storage(self) -> Dict[str, Any]:
        """JSON-ready dict with wire (camelCase) keys."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ====================================================================================
# --- Presentation Settings ---
# ====================================================================================
class ThemeSettings(OpenCamelModel):
    primary_color: str = "#667eea"
    secondary_color: str = "#764ba2"
    font_family: str = "Inter"
    logo_url: Optional[str] = None


class ProtectionSettings(OpenCamelModel):
    gated_content: Optional[bool] = None
    require_email: Optional[bool] = None


class SeoSettings(OpenCamelModel):
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    og_image: Optional[str] = None


class TrackingSettings(OpenCamelModel):
    enable_analytics: bool = True
    google_analytics_id: Optional[str] = None


class PresentationSettings(OpenCamelModel):
    theme: ThemeSettings = Field(default_factory=ThemeSettings)
    protection: Optional[ProtectionSettings] = None
    seo: Optional[SeoSettings] = None
    tracking: Optional[TrackingSettings] = None

    def to_storage(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ====================================================================================
# --- Presentation Schemas ---
# ====================================================================================
class PresentationCreate(CamelModel):
    title: str = Field(..., min_length=1)
    template_id: Optional[str] = Field(None, description="Template reference; defaults to the configured template")
    content: ContentTree = Field(default_factory=ContentTree)
    settings: PresentationSettings = Field(default_factory=PresentationSettings)
    owner_id: Optional[uuid.UUID] = Field(None, description="Owner; defaults to the bootstrap owner")


class PresentationUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1)
    content: Optional[ContentTree] = None
    settings: Optional[PresentationSettings] = None


class PresentationResponse(CamelModel):
    id: uuid.UUID
    title: str
    slug: str
    template_id: str
    content: ContentTree
    settings: PresentationSettings
    owner_id: uuid.UUID
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PresentationListItem(CamelModel):
    id: uuid.UUID
    title: str
    slug: str
    template_id: str
    owner_id: uuid.UUID
    version_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int


class PresentationListResponse(CamelModel):
    data: List[PresentationListItem]
    pagination: Pagination


class AnalyticsRollup(CamelModel):
    total_views: int = 0
    unique_viewers: int = 0
    avg_time_spent: float = 0.0


class VersionListItem(CamelModel):
    id: uuid.UUID
    version_slug: str
    recipient_name: Optional[str] = None
    recipient_email: Optional[str] = None
    created_at: Optional[datetime] = None
    view_count: int = 0


class PresentationDetailResponse(PresentationResponse):
    versions: List[VersionListItem] = Field(default_factory=list)
    analytics: Optional[AnalyticsRollup] = None


# ====================================================================================
# --- Version Schemas ---
# ====================================================================================
class VersionCreate(CamelModel):
    presentation_id: str = Field(..., description="Presentation this version personalises")
    recipient_name: Optional[str] = None
    recipient_email: Optional[EmailStr] = None
    variables: Dict[str, Any] = Field(default_factory=dict)
    password: Optional[str] = Field(None, min_length=1)
    expires_at: Optional[datetime] = None


class VersionUpdate(CamelModel):
    token: str = Field(..., min_length=1)
    variables: Optional[Dict[str, Any]] = None


class VersionResponse(CamelModel):
    id: uuid.UUID
    presentation_id: uuid.UUID
    version_slug: str
    view_token: str
    edit_token: str
    recipient_name: Optional[str] = None
    recipient_email: Optional[str] = None
    variables: Dict[str, Any] = Field(default_factory=dict)
    has_password: bool = False
    expires_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    view_url: str
    edit_url: str
    view_count: Optional[int] = None


class VersionPresentation(CamelModel):
    id: uuid.UUID
    title: str
    slug: str
    settings: PresentationSettings
    content: ContentTree


class VersionReadResponse(CamelModel):
    id: uuid.UUID
    slug: str
    presentation: VersionPresentation
    recipient_name: Optional[str] = None
    is_editable: bool
    expires_at: Optional[datetime] = None


# ====================================================================================
# --- Tracking Schemas ---
# ====================================================================================
class ClickEvent(CamelModel):
    element_id: str = Field(..., min_length=1)
    timestamp: str = Field(..., description="Client timestamp, stored as sent")


class TrackViewRequest(CamelModel):
    version_id: str = Field(..., min_length=1)
    session_id: str = Field(..., min_length=1, max_length=255)
    ip_address: Optional[str] = Field(None, max_length=45)
    user_agent: Optional[str] = None
    country: Optional[str] = Field(None, max_length=100)
    city: Optional[str] = Field(None, max_length=100)
    device: Optional[str] = None
    browser: Optional[str] = None

    @field_validator("country", "city", "device", "browser", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        """Treat empty strings from the browser as missing."""
        if isinstance(v, str) and not v.strip():
            return None
        return v.strip() if isinstance(v, str) else v


class TrackEngagementRequest(CamelModel):
    """Partial update; every omitted field is left untouched."""
    session_id: str = Field(..., min_length=1, max_length=255)
    time_spent: Optional[float] = Field(None, ge=0, description="Cumulative seconds, not a delta")
    scroll_depth: Optional[float] = Field(None, ge=0, le=100, description="Latest scroll depth percentage")
    sections_viewed: Optional[List[str]] = None
    clicks: Optional[List[ClickEvent]] = None


class SessionRecordResponse(CamelModel):
    id: uuid.UUID
    version_id: uuid.UUID
    session_id: str
    time_spent: float
    scroll_depth: float
    sections_viewed: List[str]
    clicks: List[ClickEvent]
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    device: Optional[str] = None
    browser: Optional[str] = None
    country: Optional[str] = None
    city: Optional[str] = None
    first_seen: datetime
    last_ping: datetime


# ====================================================================================
# --- Analytics Schemas ---
# ====================================================================================
class DeviceBreakdown(CamelModel):
    desktop: int = 0
    mobile: int = 0
    tablet: int = 0


class LocationCount(CamelModel):
    country: str
    count: int


class SectionStat(CamelModel):
    section_id: str
    views: int
    avg_time: float


class PresentationAnalyticsResponse(AnalyticsRollup):
    scroll_depth_avg: float = 0.0
    top_sections: List[SectionStat] = Field(default_factory=list)
    device_breakdown: DeviceBreakdown = Field(default_factory=DeviceBreakdown)
    location_data: List[LocationCount] = Field(default_factory=list)


class VersionAnalyticsResponse(CamelModel):
    total_views: int
    unique_sessions: int
    avg_time_spent: float
    avg_scroll_depth: float
    views: List[SessionRecordResponse]


# ====================================================================================
# --- Template Schemas ---
# ====================================================================================
class TemplateVariable(CamelModel):
    key: str
    type: Literal["text", "number", "link", "date", "array", "logo"] = "text"
    value: Any = None
    label: str


class TemplateDefinition(CamelModel):
    """A template as served to the editor: structure plus the variables it expects."""
    id: str
    name: str
    slug: str
    description: Optional[str] = None
    thumbnail: Optional[str] = None
    required_variables: List[TemplateVariable] = Field(default_factory=list)
    default_content: ContentTree
    default_settings: PresentationSettings = Field(default_factory=PresentationSettings)
    default_data: Dict[str, Any] = Field(default_factory=dict)


class TemplateCreate(CamelModel):
    name: str = Field(..., min_length=1)
    slug: str = Field(..., min_length=1, max_length=100, pattern=r"^[a-z0-9][a-z0-9-]*$")
    description: Optional[str] = None
    thumbnail: Optional[str] = None
    structure: ContentTree
    default_data: Dict[str, Any] = Field(default_factory=dict)


# ====================================================================================
# --- Proposal Generation Schemas ---
# ====================================================================================
class ProposalPackage(CamelModel):
    name: str
    type: str = "Enterprise"
    job_postings: int = Field(0, ge=0)
    boost: int = Field(0, ge=0)
    locations: int = Field(0, ge=0)
    price: float = Field(..., ge=0)
    regular_price: Optional[float] = Field(None, ge=0)
    features: List[str] = Field(default_factory=list)
    highlighted: bool = False


class ProposalSocialBoost(CamelModel):
    quantity: int = Field(..., ge=1)
    price: float = Field(..., ge=0)


class ProposalCompanyProfile(CamelModel):
    type: Literal["Professional", "Business", "Expert"] = "Professional"
    price: float = Field(..., ge=0)
    regular_price: Optional[float] = Field(None, ge=0)


class AccountManager(CamelModel):
    name: str
    email: EmailStr
    phone: str = ""
    photo: Optional[str] = None


class ProposalData(CamelModel):
    """Sales-proposal input for the content generator."""
    client_name: str = Field(..., min_length=1)
    client_email: Optional[EmailStr] = None
    offer_title: str = Field(..., min_length=1)
    offer_date: Optional[str] = None
    valid_until: Optional[str] = None
    packages: List[ProposalPackage] = Field(default_factory=list)
    social_boost: Optional[ProposalSocialBoost] = None
    company_profile: Optional[ProposalCompanyProfile] = None
    account_manager: AccountManager
    logo: Optional[str] = None
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None
    currency: str = "PLN"
    total_price: float = Field(..., ge=0)
    total_regular_price: Optional[float] = Field(None, ge=0)
    savings: Optional[float] = Field(None, ge=0)
    custom_message: Optional[str] = None
    expires_at: Optional[datetime] = None

    def as_variables(self) -> Dict[str, Any]:
        """Variable map for placeholder substitution (camelCase keys, nested)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class GeneratedProposalResponse(CamelModel):
    presentation_id: uuid.UUID
    version_id: uuid.UUID
    view_url: str
    edit_url: str
