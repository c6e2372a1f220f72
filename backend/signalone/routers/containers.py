"""
SignalOne - Containers API Router
"""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import get_current_user_id
from ..database import get_db
from ..services.issues import IssueRepository

router = APIRouter(prefix="/containers", tags=["containers"])


@router.get("", response_model=List[str])
def list_containers(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Distinct container names across the caller's issues."""
    return IssueRepository(db).containers(user_id)
