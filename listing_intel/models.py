"""
Typed data models for the listing extraction and scoring pipeline.
All data structures used throughout the codebase should be defined here.
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, FrozenSet, List, Optional


@dataclass
class FieldDiagnostic:
    """A field that could not be extracted and fell back to its default."""
    field: str
    slug: str
    error: str


# ---- App detail page ----

@dataclass
class AppDeveloper:
    name: str = ""
    url: str = ""
    website: Optional[str] = None


@dataclass
class AppFeature:
    """A feature within a subcategory on the app detail page."""
    title: str
    url: str
    feature_handle: str


@dataclass
class AppSubcategoryGroup:
    title: str
    features: List[AppFeature] = field(default_factory=list)


@dataclass
class AppCategory:
    """A declared category and its feature tree."""
    title: str
    url: str
    type: str = "primary"  # "primary" or "secondary"
    subcategories: List[AppSubcategoryGroup] = field(default_factory=list)


@dataclass
class PricingPlan:
    """A pricing tier card from the app detail page."""
    name: str
    price: Optional[float] = None
    period: Optional[str] = None  # "month" or "year"
    yearly_price: Optional[float] = None
    discount_text: Optional[str] = None
    trial_text: Optional[str] = None
    features: List[str] = field(default_factory=list)


@dataclass
class AppSupport:
    email: Optional[str] = None
    portal_url: Optional[str] = None
    phone: Optional[str] = None


@dataclass
class AppDetails:
    """Structured record parsed from a single app detail page."""
    app_slug: str
    app_name: str = ""
    icon_url: Optional[str] = None
    app_introduction: str = ""
    app_details: str = ""
    seo_title: str = ""
    seo_meta_description: str = ""
    features: List[str] = field(default_factory=list)
    pricing: str = ""
    average_rating: Optional[float] = None
    rating_count: Optional[int] = None
    developer: AppDeveloper = field(default_factory=AppDeveloper)
    launched_date: Optional[date] = None
    demo_store_url: Optional[str] = None
    languages: List[str] = field(default_factory=list)
    integrations: List[str] = field(default_factory=list)
    categories: List[AppCategory] = field(default_factory=list)
    pricing_plans: List[PricingPlan] = field(default_factory=list)
    support: Optional[AppSupport] = None
    parse_warnings: List[FieldDiagnostic] = field(default_factory=list, compare=False)


# ---- Category page ----

@dataclass
class FirstPageApp:
    """App card as shown in category and search listings (up to 24 per page)."""
    app_slug: str
    name: str
    short_description: str = ""
    average_rating: float = 0.0
    rating_count: int = 0
    app_url: str = ""
    logo_url: str = ""
    position: Optional[int] = None
    pricing_hint: Optional[str] = None
    is_sponsored: bool = False
    is_built_for_shopify: bool = False
    # Marketplace built-in features, listed among search results only
    is_built_in: bool = False


@dataclass
class FirstPageMetrics:
    """Aggregates over the first page of app cards."""
    sponsored_count: int
    built_for_shopify_count: int
    count_100_plus_reviews: int
    count_1000_plus_reviews: int
    total_reviews: int
    top_4_avg_rating: float
    top_4_avg_rating_count: float
    top_1_pct_reviews: float
    top_4_pct_reviews: float
    top_8_pct_reviews: float


@dataclass
class SubcategoryLink:
    slug: str
    url: str
    title: str


@dataclass
class CategoryPageData:
    """Structured record parsed from a single category page."""
    slug: str
    url: str
    data_source_url: str = ""
    title: str = ""
    breadcrumb: str = ""
    description: str = ""
    app_count: Optional[int] = None
    first_page_metrics: Optional[FirstPageMetrics] = None
    first_page_apps: List[FirstPageApp] = field(default_factory=list)
    subcategory_links: List[SubcategoryLink] = field(default_factory=list)
    parse_warnings: List[FieldDiagnostic] = field(default_factory=list, compare=False)


# ---- Search page ----

@dataclass
class SearchPageData:
    """One page of keyword search results."""
    keyword: str
    total_results: Optional[int] = None
    apps: List[FirstPageApp] = field(default_factory=list)
    has_next_page: bool = False
    current_page: int = 1
    parse_warnings: List[FieldDiagnostic] = field(default_factory=list, compare=False)


# ---- Keyword mining ----

@dataclass
class AppMetadataInput:
    """The subset of an app record the keyword miner reads."""
    name: str
    subtitle: Optional[str] = None
    introduction: Optional[str] = None
    description: Optional[str] = None
    features: List[str] = field(default_factory=list)
    categories: List[AppCategory] = field(default_factory=list)


@dataclass
class KeywordSource:
    field: str
    weight: float


@dataclass
class ScoredKeyword:
    """Keyword candidate with its cumulative score and provenance."""
    keyword: str
    score: float
    count: int
    sources: List[KeywordSource] = field(default_factory=list)


# ---- Similarity ----

@dataclass
class CompetitorPair:
    """A tracked (app, competitor) relationship."""
    tracked_app_slug: str
    app_slug: str


@dataclass
class AppSnapshot:
    """Latest stored snapshot fields used for similarity."""
    app_slug: str
    categories: List[Dict[str, Any]] = field(default_factory=list)
    app_introduction: Optional[str] = None


@dataclass
class AppInfo:
    """Identity fields of a tracked app."""
    slug: str
    name: str
    subtitle: Optional[str] = None


@dataclass
class AppSimilarityData:
    """Per-app signal sets, derived once per batch."""
    category_slugs: FrozenSet[str] = frozenset()
    feature_handles: FrozenSet[str] = frozenset()
    keyword_ids: FrozenSet[str] = frozenset()
    text_tokens: FrozenSet[str] = frozenset()


@dataclass
class SimilarityResult:
    """Similarity between two apps, keyed by the canonical (smaller slug first) pair."""
    app_slug_a: str
    app_slug_b: str
    overall: float
    category: float
    feature: float
    keyword: float
    text: float


@dataclass
class ScrapeRun:
    """Bookkeeping row for one batch invocation."""
    id: int
    scraper_type: str
    triggered_by: str
    status: str = "running"  # running, completed, failed
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None


# ---- Keyword opportunity ----

@dataclass
class KeywordOpportunityScores:
    room: float
    demand: float
    organic: float
    maturity: float
    quality: float


@dataclass
class KeywordOpportunityStats:
    total_results: int
    organic_count: int
    sponsored_count: int
    bfs_count: int
    count_1000: int
    count_100: int
    top_1_reviews: int
    top_4_total_reviews: int
    top_4_avg_rating: Optional[float]
    first_page_total_reviews: int
    first_page_avg_rating: Optional[float]
    top_1_review_share: float
    top_4_review_share: float


@dataclass
class KeywordOpportunity:
    """Opportunity score (0-100) for a results page."""
    opportunity_score: int
    scores: KeywordOpportunityScores
    stats: KeywordOpportunityStats
    top_apps: List[FirstPageApp] = field(default_factory=list)
