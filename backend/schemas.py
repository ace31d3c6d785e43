"""Pydantic schemas for request/response validation."""

from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List
from enum import Enum


# Owner placeholder used by the fleet roster when the spreadsheet has none
UNKNOWN_OWNER = "Desconocido"


# Enums
class ExpenseCategory(str, Enum):
    PEAJE = "PEAJE"
    AUTOPISTA = "AUTOPISTA"
    TELEPASE = "TELEPASE"
    OTRO = "OTRO"  # Catch-all


class AuditAction(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    LOGIN = "LOGIN"
    IMPORT = "IMPORT"
    EXPORT = "EXPORT"
    SETTINGS = "SETTINGS"


# Fleet Schemas
class FleetEntry(BaseModel):
    """Authoritative fleet roster row."""
    plate: str = ""
    owner: Optional[str] = UNKNOWN_OWNER
    tag: Optional[str] = None
    unit_code: Optional[str] = None

    @field_validator("plate", mode="before")
    @classmethod
    def _none_plate(cls, v):
        return v or ""

    class Config:
        from_attributes = True


# Truck Record Schemas
class ExtractedItem(BaseModel):
    """One toll/freight line item as returned by the extraction service."""
    plate: str = ""
    owner: str = ""
    amount: float = 0.0
    concept: str = ""
    date: Optional[str] = None  # YYYY-MM-DD
    tag: Optional[str] = None

    @field_validator("plate", "owner", "concept", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return "" if v is None else v

    @field_validator("amount", mode="before")
    @classmethod
    def _none_to_zero(cls, v):
        return 0.0 if v is None else v


class ExtractedRecord(ExtractedItem):
    """Stored truck movement. Reconciliation fills unit_code/registered_owner/is_verified."""
    id: str
    source_file_id: Optional[str] = None
    source_file_name: Optional[str] = None
    unit_code: Optional[str] = None
    registered_owner: Optional[str] = None
    is_verified: Optional[bool] = None
    search_index: Optional[str] = None

    class Config:
        from_attributes = True


class ReconciliationSummary(BaseModel):
    total: int = 0
    verified: int = 0
    unverified: int = 0


# Expense & Statement Schemas
class ExpenseItem(BaseModel):
    """Card statement line item as returned by the extraction service."""
    date: Optional[str] = None
    concept: str = ""
    amount: float = 0.0
    category: ExpenseCategory = ExpenseCategory.OTRO

    @field_validator("category", mode="before")
    @classmethod
    def _coerce_category(cls, v):
        if isinstance(v, ExpenseCategory):
            return v
        try:
            return ExpenseCategory(str(v or "").strip().upper())
        except ValueError:
            return ExpenseCategory.OTRO

    @field_validator("concept", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return "" if v is None else v

    @field_validator("amount", mode="before")
    @classmethod
    def _none_to_zero(cls, v):
        return 0.0 if v is None else v


class ExpenseRecord(ExpenseItem):
    id: str
    statement_id: Optional[str] = None
    source_file_id: Optional[str] = None
    source_file_name: Optional[str] = None
    search_index: Optional[str] = None

    class Config:
        from_attributes = True


class StatementMetadata(BaseModel):
    """Header data extracted from a card statement."""
    bank: str = "Desc."
    holder: str = "Desc."
    period: str = "-"
    due_date: str = "-"
    total_billed: float = 0.0


class CardStatement(BaseModel):
    id: str
    source_file_id: Optional[str] = None
    bank: Optional[str] = None
    holder: Optional[str] = None
    period: Optional[str] = None
    due_date: Optional[str] = None
    total_billed: Optional[float] = 0.0
    total_tolls_detected: Optional[float] = None
    created_at: int = 0

    class Config:
        from_attributes = True


# File Schemas
class UploadedFileCreate(BaseModel):
    id: Optional[str] = None
    name: str
    mime_type: Optional[str] = None
    size_bytes: int = 0
    content_base64: Optional[str] = None


class UploadedFileSummary(BaseModel):
    """File listing entry without the blob."""
    id: str
    name: str
    mime_type: Optional[str] = None
    size_bytes: Optional[int] = 0
    created_at: Optional[int] = 0

    class Config:
        from_attributes = True


class UploadedFileRecord(UploadedFileSummary):
    content_base64: Optional[str] = None


class CascadeDeleteResult(BaseModel):
    """Counts removed by a cascading file delete."""
    files: int = 0
    records: int = 0
    expenses: int = 0
    statements: int = 0


# User Schemas
class UserCreate(BaseModel):
    email: EmailStr
    name: str = Field(..., min_length=2)
    role: str = "user"


class UserResponse(BaseModel):
    id: str
    email: str
    name: str
    role: Optional[str] = "user"
    created_at: Optional[int] = 0
    is_active: Optional[bool] = True

    class Config:
        from_attributes = True


class Actor(BaseModel):
    """Who performed an action, as recorded in the audit log."""
    id: str = "system"
    name: str = "System/Guest"


# Settings Schemas
class ThemeSettings(BaseModel):
    primary_color: str = "slate"  # blue, green, purple, slate, orange
    font_family: str = "inter"  # inter, roboto, mono
    processing_mode: Optional[str] = "free"  # free, fast


# Audit Schemas
class AuditLog(BaseModel):
    id: str
    user_id: str
    user_name: str
    action: AuditAction
    module: str
    details: Optional[str] = None
    timestamp: int

    class Config:
        from_attributes = True


# Pipeline request/response
class IngestRecordsRequest(BaseModel):
    file: UploadedFileCreate
    items: List[ExtractedItem]


class IngestRecordsResponse(BaseModel):
    file_id: str
    records: List[ExtractedRecord]
    summary: ReconciliationSummary


class IngestStatementRequest(BaseModel):
    file: UploadedFileCreate
    metadata: StatementMetadata = Field(default_factory=StatementMetadata)
    items: List[ExpenseItem]


class IngestStatementResponse(BaseModel):
    statement: CardStatement
    expenses: List[ExpenseRecord]


class FleetReplaceResponse(BaseModel):
    fleet_size: int
    summary: ReconciliationSummary


class DeleteIdsRequest(BaseModel):
    ids: List[str]


class SystemSnapshot(BaseModel):
    """Everything the dashboard loads at once. Failed kinds come back empty."""
    records: List[ExtractedRecord] = []
    expenses: List[ExpenseRecord] = []
    statements: List[CardStatement] = []
    fleet: List[FleetEntry] = []
    theme: Optional[ThemeSettings] = None
    errors: List[str] = []
