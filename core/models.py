# core/models.py

import uuid
from datetime import date, datetime, timezone
from typing import Annotated, Any, Dict, List, Literal, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, StringConstraints, model_validator
from pydantic.alias_generators import to_camel

ActivityType = Literal["sowing", "irrigation", "spraying", "harvesting", "weeding", "fertilizing"]
ExpenseCategory = Literal["seeds", "fertilizers", "pesticides", "labor", "equipment", "other"]
HealthStatus = Literal["healthy", "diseased", "treated", "recovered"]
Severity = Literal["low", "medium", "high"]

ISO_DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


def new_id() -> str:
    return uuid.uuid4().hex


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso_date(value: Any) -> Any:
    """Normalizes date/datetime values to a YYYY-MM-DD string."""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return value


# Calendar dates are kept as ISO strings so ranges compare lexicographically.
ISODate = Annotated[str, BeforeValidator(to_iso_date), StringConstraints(pattern=ISO_DATE_PATTERN)]


class Record(BaseModel):
    """Common fields of everything stored in a collection."""
    id: str = Field(default_factory=new_id)
    created_at: datetime = Field(default_factory=utc_now)


# --- Farms ---

class Coordinates(BaseModel):
    lat: float
    lng: float


class FarmLocation(BaseModel):
    district: str = ""
    village: str = ""
    coordinates: Optional[Coordinates] = None

    def label(self) -> str:
        return ", ".join(part for part in (self.village, self.district) if part)


class Farm(Record):
    """A farm owned by a single user; every other record hangs off one."""
    user_id: str
    farm_name: str = Field(min_length=3)
    location: Optional[FarmLocation] = None
    land_size_acres: float = Field(gt=0)
    soil_type: Optional[str] = None
    irrigation_type: Optional[str] = None
    primary_crops: List[str] = []


# --- Farm records ---

class ActivityMetadata(BaseModel):
    duration: Optional[float] = Field(default=None, ge=0)
    area: Optional[float] = Field(default=None, ge=0)
    materials: List[str] = []


class Activity(Record):
    """Represents a single farming operation logged against a farm."""
    farm_id: str
    activity_type: ActivityType
    description: str = ""
    crop_name: str
    date: ISODate
    voice_note_url: Optional[str] = None
    images: List[str] = []
    metadata: Optional[ActivityMetadata] = None


class Expense(Record):
    farm_id: str
    category: ExpenseCategory
    item_name: str
    quantity: Optional[float] = Field(default=None, ge=0)
    unit: Optional[str] = None
    cost: float = Field(ge=0)
    date: ISODate
    receipt_url: Optional[str] = None
    notes: Optional[str] = None


class BuyerInfo(BaseModel):
    name: Optional[str] = None
    contact: Optional[str] = None


class Sale(Record):
    farm_id: str
    crop_name: str
    quantity: float = Field(gt=0)
    unit: str
    price_per_unit: float = Field(ge=0)
    total_amount: Optional[float] = Field(default=None, ge=0)
    buyer_info: Optional[BuyerInfo] = None
    sale_date: ISODate

    @model_validator(mode="after")
    def fill_total_amount(self) -> "Sale":
        # The stored total is authoritative afterwards; it is only derived once.
        if self.total_amount is None:
            self.total_amount = self.quantity * self.price_per_unit
        return self


class Treatments(BaseModel):
    organic: List[str] = []
    chemical: List[str] = []
    preventive: List[str] = []


class AIDiagnosis(BaseModel):
    """Disease diagnosis produced by the crop doctor; stored as-is."""
    disease: str
    confidence: float = Field(ge=0, le=1)
    description: str
    treatments: Treatments = Treatments()
    severity: Severity = "medium"


class HealthRecord(Record):
    farm_id: str
    crop_name: str
    image_urls: List[str] = []
    ai_diagnosis: Optional[AIDiagnosis] = None
    symptoms: Optional[str] = None
    treatment_applied: Optional[str] = None
    status: HealthStatus
    recorded_date: ISODate


class DateRange(BaseModel):
    """Inclusive ISO date bounds; a missing bound is open."""
    start: Optional[ISODate] = None
    end: Optional[ISODate] = None

    def contains(self, value: Optional[str]) -> bool:
        if value is None:
            return False
        if self.start is not None and value < self.start:
            return False
        if self.end is not None and value > self.end:
            return False
        return True

    def as_query(self) -> Dict[str, str]:
        """The equivalent MongoDB comparison operators."""
        query = {}
        if self.start is not None:
            query["$gte"] = self.start
        if self.end is not None:
            query["$lte"] = self.end
        return query


# --- Aggregation results ---

class StatsModel(BaseModel):
    """
    Result models dump camelCase keys with ``model_dump(by_alias=True)``.

    Record lists inside them hold the input records as given, models or raw
    documents, and are not validated again.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ActivityStats(StatsModel):
    total_activities: int = 0
    activity_counts: Dict[str, int] = {}
    monthly_activity: Dict[str, int] = {}
    recent_activities: List[Any] = []


class FinancialSummary(StatsModel):
    total_expenses: float = 0
    total_revenue: float = 0
    net_profit: float = 0
    profit_margin: float = 0
    expenses_by_category: Dict[str, float] = {}
    expense_count: int = 0
    sales_count: int = 0


class HealthStats(StatsModel):
    total_records: int = 0
    status_counts: Dict[str, int] = {}
    crop_counts: Dict[str, int] = {}
    recent_issues: List[Any] = []
    healthy_percentage: float = 0


class FarmStatsSnapshot(StatsModel):
    total_activities: int = 0
    monthly_expenses: float = 0
    health_records: int = 0
    recent_activities: List[Activity] = []


# --- Users & conversations ---

class FarmerProfile(BaseModel):
    """Defines the structure for a farmer's profile, including a password."""
    user_id: str
    hashed_password: Optional[str] = None
    full_name: Optional[str] = None
    preferred_language: str = "en"


class FarmContext(BaseModel):
    farm_id: str
    current_crops: List[str] = []
    location: str = ""


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime = Field(default_factory=utc_now)
    language: Optional[str] = None


class ChatConversation(Record):
    user_id: str
    language: str = "en"
    farm_context: Optional[FarmContext] = None
    messages: List[ChatMessage] = []
    updated_at: datetime = Field(default_factory=utc_now)


# --- Weather ---

class CurrentWeather(BaseModel):
    temperature: int
    humidity: float
    description: str
    wind_speed: int
    pressure: int


class ForecastDay(BaseModel):
    date: str
    max_temp: int
    min_temp: int
    description: str
    humidity: int
    precipitation: float


class WeatherReport(BaseModel):
    current: CurrentWeather
    forecast: List[ForecastDay] = []
