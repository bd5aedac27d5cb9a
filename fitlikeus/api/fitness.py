from typing import Optional

from fastapi import APIRouter, Depends, Query, Response

from fitlikeus.core.auth import require_client
from fitlikeus.core.store import DocumentStore, get_store
from fitlikeus.features.fitness.service import FitnessService
from fitlikeus.models.fitness import FitnessEntryCreate, FitnessEntryUpdate
from fitlikeus.models.user import UserProfile

router = APIRouter(prefix="/v1/fitness")


def get_fitness_service(store: DocumentStore = Depends(get_store)) -> FitnessService:
    return FitnessService(store)


@router.get("")
def list_entries(
    limit: Optional[int] = Query(None, ge=1, le=500),
    user: UserProfile = Depends(require_client),
    fitness: FitnessService = Depends(get_fitness_service),
):
    """Entries newest first, with running totals for the stat cards."""
    return {"entries": fitness.list(user.uid, limit=limit), "summary": fitness.summary(user.uid)}


@router.post("", status_code=201)
def create_entry(
    body: FitnessEntryCreate,
    user: UserProfile = Depends(require_client),
    fitness: FitnessService = Depends(get_fitness_service),
):
    return fitness.create(user.uid, body)


@router.get("/{entry_id}")
def get_entry(entry_id: str, user: UserProfile = Depends(require_client), fitness: FitnessService = Depends(get_fitness_service)):
    return fitness.get(user.uid, entry_id)


@router.patch("/{entry_id}")
def update_entry(
    entry_id: str,
    body: FitnessEntryUpdate,
    user: UserProfile = Depends(require_client),
    fitness: FitnessService = Depends(get_fitness_service),
):
    return fitness.update(user.uid, entry_id, body)


@router.delete("/{entry_id}", status_code=204)
def delete_entry(entry_id: str, user: UserProfile = Depends(require_client), fitness: FitnessService = Depends(get_fitness_service)):
    fitness.delete(user.uid, entry_id)
    return Response(status_code=204)
