from fastapi import APIRouter, Depends, Response

from fitlikeus.core.auth import require_client
from fitlikeus.core.store import DocumentStore, get_store
from fitlikeus.features.journal.service import JournalService
from fitlikeus.models.journal import JournalEntryCreate, JournalEntryUpdate
from fitlikeus.models.user import UserProfile

router = APIRouter(prefix="/v1/journal")


def get_journal_service(store: DocumentStore = Depends(get_store)) -> JournalService:
    return JournalService(store)


@router.get("")
def list_entries(user: UserProfile = Depends(require_client), journal: JournalService = Depends(get_journal_service)):
    return {"entries": journal.list(user.uid)}


@router.post("", status_code=201)
def create_entry(
    body: JournalEntryCreate,
    user: UserProfile = Depends(require_client),
    journal: JournalService = Depends(get_journal_service),
):
    return journal.create(user.uid, body)


@router.get("/{entry_id}")
def get_entry(entry_id: str, user: UserProfile = Depends(require_client), journal: JournalService = Depends(get_journal_service)):
    return journal.get(user.uid, entry_id)


@router.patch("/{entry_id}")
def update_entry(
    entry_id: str,
    body: JournalEntryUpdate,
    user: UserProfile = Depends(require_client),
    journal: JournalService = Depends(get_journal_service),
):
    return journal.update(user.uid, entry_id, body)


@router.delete("/{entry_id}", status_code=204)
def delete_entry(entry_id: str, user: UserProfile = Depends(require_client), journal: JournalService = Depends(get_journal_service)):
    journal.delete(user.uid, entry_id)
    return Response(status_code=204)
