from fastapi import APIRouter, Depends, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from framebook.api.deps import get_current_user
from framebook.db.models import User
from framebook.db.session import get_db
from framebook.schemas.schedule import UnavailabilityCreateRequest, UnavailabilityResponse
from framebook.services.schedule_service import add_unavailability, remove_unavailability

router = APIRouter(prefix="/unavailability", tags=["schedule"])


@router.post("", response_model=UnavailabilityResponse, status_code=status.HTTP_201_CREATED)
def create_busy_interval(
    payload: UnavailabilityCreateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> UnavailabilityResponse:
    item = add_unavailability(db=db, provider=current_user, starts_at=payload.starts_at, ends_at=payload.ends_at)
    return UnavailabilityResponse.model_validate(item)


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_busy_interval(
    item_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Response:
    remove_unavailability(db=db, provider_id=current_user.id, item_id=item_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
