from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import date
import logging

from database import get_db
from schemas.journal_entry import (
    JournalEntry,
    JournalEntryCreate,
    JournalEntryUpdate,
    RegenerateRequest,
    RegenerateResult,
)
from crud import journal_entry as journal_entry_crud
from crud import journal_generation
from models.journal_entry import EntryType, SourceType
from utils.auth_utils import ACCOUNTING_WRITERS, get_current_user, get_user_identifier, require_group
from utils.tenancy import get_tenant_id

router = APIRouter(
    prefix="/journal-entries",
    tags=["Journal Entries"],
)
logger = logging.getLogger(__name__)


@router.post("/", response_model=JournalEntry, status_code=status.HTTP_201_CREATED)
def create_journal_entry(
    entry: JournalEntryCreate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(require_group(ACCOUNTING_WRITERS))
):
    """
    Create an unposted manual journal entry.
    Debits must equal credits only when the entry is posted.
    """
    return journal_entry_crud.create_manual_entry(db, entry, tenant_id, user_id=get_user_identifier(user))


@router.get("/", response_model=List[JournalEntry])
def get_journal_entries(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    is_posted: Optional[bool] = None,
    entry_type: Optional[EntryType] = None,
    source_type: Optional[SourceType] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(get_current_user)
):
    return journal_entry_crud.get_journal_entries(
        db=db,
        tenant_id=tenant_id,
        start_date=start_date,
        end_date=end_date,
        is_posted=is_posted,
        entry_type=entry_type,
        source_type=source_type,
        skip=skip,
        limit=limit
    )


@router.post("/regenerate", response_model=RegenerateResult)
def regenerate_journal_entries(
    request: RegenerateRequest,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(require_group(["admin"]))
):
    """
    Rebuilds unposted auto-generated entries in the range from current source data.
    Posted entries are left untouched.
    """
    return journal_generation.regenerate_auto_entries(
        db, tenant_id, request.start_date, request.end_date, user_id=get_user_identifier(user)
    )


@router.post("/generate/{source_type}/{source_id}", response_model=List[JournalEntry], status_code=status.HTTP_201_CREATED)
def generate_journal_entries(
    source_type: SourceType,
    source_id: int,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(require_group(ACCOUNTING_WRITERS))
):
    return journal_generation.generate_from_source(
        db, source_type, source_id, tenant_id, user_id=get_user_identifier(user)
    )


@router.get("/{entry_id}", response_model=JournalEntry)
def get_journal_entry(
    entry_id: int,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(get_current_user)
):
    db_entry = journal_entry_crud.get_journal_entry(db=db, entry_id=entry_id, tenant_id=tenant_id)
    if db_entry is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Journal entry not found")
    return db_entry


@router.patch("/{entry_id}", response_model=JournalEntry)
def update_journal_entry(
    entry_id: int,
    entry: JournalEntryUpdate,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(require_group(ACCOUNTING_WRITERS))
):
    return journal_entry_crud.update_manual_entry(db, entry_id, entry, tenant_id, user_id=get_user_identifier(user))


@router.post("/{entry_id}/post", response_model=JournalEntry)
def post_journal_entry(
    entry_id: int,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(require_group(ACCOUNTING_WRITERS))
):
    return journal_entry_crud.post_entry(db, entry_id, tenant_id, user_id=get_user_identifier(user))


@router.post("/{entry_id}/unpost", response_model=JournalEntry)
def unpost_journal_entry(
    entry_id: int,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(require_group(ACCOUNTING_WRITERS))
):
    return journal_entry_crud.unpost_entry(db, entry_id, tenant_id, user_id=get_user_identifier(user))


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_journal_entry(
    entry_id: int,
    db: Session = Depends(get_db),
    tenant_id: str = Depends(get_tenant_id),
    user: dict = Depends(require_group(ACCOUNTING_WRITERS))
):
    journal_entry_crud.delete_entry(db, entry_id, tenant_id)
    logger.info(f"Journal entry {entry_id} deleted by {get_user_identifier(user)}")
