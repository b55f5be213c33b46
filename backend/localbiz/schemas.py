from pydantic import BaseModel, Field


class ScoreBreakdownView(BaseModel):
    rating: float
    experience: float
    completeness: float
    distance: float
    text_match: float


class BusinessResult(BaseModel):
    id: str
    name: str
    category: str
    category_id: str
    description: str
    city: str
    address: str
    lat: float
    lng: float
    is_verified: bool
    is_featured: bool
    is_premium: bool
    is_remote: bool
    rating: float = Field(ge=0, le=5)
    review_count: int = Field(ge=0)
    years_of_experience: int = Field(ge=0)
    images: list[str] = Field(default_factory=list)
    phone: str
    email: str
    website: str
    owner_id: str
    distance_km: float | None = None
    distance_label: str | None = None
    score: float | None = Field(default=None, ge=0, le=1)
    score_breakdown: ScoreBreakdownView | None = None


class BusinessDetail(BusinessResult):
    profile_completeness: float = Field(ge=0, le=1)
    missing_profile_fields: list[str] = Field(default_factory=list)


class SearchFilters(BaseModel):
    category_id: str | None = None
    remote_only: bool = False
    radius_km: float | None = None
    limit: int


class SearchResponse(BaseModel):
    query: str | None = None
    terms: list[str]
    location_used: bool
    filters: SearchFilters
    results: list[BusinessResult]
    request_id: str | None = None


class BusinessListResponse(BaseModel):
    location_used: bool
    results: list[BusinessResult]
    request_id: str | None = None


class HealthResponse(BaseModel):
    status: str
