from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel
from typing import List, Dict, Any, Optional


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


class TrackRequest(BaseModel):
    event: str = Field(..., min_length=1, description="Event name, e.g. business_listing_viewed")
    properties: Dict[str, Any] = Field(default_factory=dict)


class TrackResponse(CamelModel):
    success: bool = True
    event_id: str


class SourceCount(BaseModel):
    source: str
    count: int


class DailyViews(BaseModel):
    date: str
    views: int


class HourCount(BaseModel):
    hour: int
    count: int


class KeywordCount(BaseModel):
    keyword: str
    count: int


class MetricsBundle(CamelModel):
    total_views: int = 0
    total_contacts: int = 0
    total_clicks: int = 0
    avg_time_on_page: int = 0
    top_sources: List[SourceCount] = Field(default_factory=list)
    daily_views: List[DailyViews] = Field(default_factory=list)
    popular_times: List[HourCount] = Field(default_factory=list)
    search_keywords: List[KeywordCount] = Field(default_factory=list)


class DashboardResponse(CamelModel):
    success: bool = True
    metrics: MetricsBundle
    timeframe: str


class ActivityItem(CamelModel):
    event: str
    timestamp: str
    user_id: Optional[Any] = None
    business_id: Optional[Any] = None


class PlatformMetrics(CamelModel):
    total_events: int
    unique_users: int
    total_businesses: int
    event_breakdown: Dict[str, int]
    recent_activity: List[ActivityItem]


class PlatformResponse(CamelModel):
    success: bool = True
    platform_metrics: PlatformMetrics


class DashboardQueryParams(BaseModel):
    timeframe: str = Field("30d", description="Window length: 7d, 30d or 90d (anything else means 30d)")


class ErrorResponse(BaseModel):
    error: str
    message: Optional[str] = None


class Principal(BaseModel):
    id: str
    email: str = ""
    role: str = "user"
