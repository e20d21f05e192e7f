from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal
from models.journal_entry import EntryType, SourceType
from .journal_entry_line import JournalEntryLineCreate, JournalEntryLine


class JournalEntryBase(BaseModel):
    entry_date: date
    description: str = Field(..., min_length=1, max_length=500)


class JournalEntryCreate(JournalEntryBase):
    reference: Optional[str] = Field(None, max_length=50)
    lines: List[JournalEntryLineCreate]

    @field_validator('lines')
    def check_line_count(cls, lines):
        if len(lines) < 2:
            raise ValueError('A journal entry needs at least one debit and one credit line.')
        return lines


class JournalEntryUpdate(BaseModel):
    entry_date: Optional[date] = None
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    lines: Optional[List[JournalEntryLineCreate]] = None

    @field_validator('lines')
    def check_line_count(cls, lines):
        if lines is not None and len(lines) < 2:
            raise ValueError('A journal entry needs at least one debit and one credit line.')
        return lines


class RegenerateRequest(BaseModel):
    start_date: date
    end_date: date


class RegenerateResult(BaseModel):
    deleted: int
    created: int
    skipped_posted: int
    skipped_closed: int = 0


class JournalEntry(JournalEntryBase):
    id: int
    tenant_id: str
    reference: str
    entry_type: EntryType
    source_entity_type: Optional[SourceType] = None
    source_entity_id: Optional[int] = None
    is_posted: bool
    posted_by: Optional[str] = None
    posted_at: Optional[datetime] = None
    fiscal_year: int
    fiscal_period: int
    total_debit: Decimal
    total_credit: Decimal
    is_balanced: bool
    lines: List[JournalEntryLine] = []

    class Config:
        from_attributes = True
