"""Assignment endpoints."""
from typing import List

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from feedback_api.auth.service import get_current_active_user, require_roles
from feedback_api.database import get_db
from feedback_api.extraction import ContentProcessor, get_content_processor
from feedback_api.models import User, UserRole
from .schemas import AssignmentCreate, AssignmentUpdate, AssignmentResponse
from .service import AssignmentService

router = APIRouter(prefix="/assignments", tags=["Assignments"])


def get_assignment_service(db: Session = Depends(get_db)) -> AssignmentService:
    return AssignmentService(db)


@router.post("", response_model=AssignmentResponse, status_code=status.HTTP_201_CREATED)
async def create_assignment(
    data: AssignmentCreate,
    current_user: User = Depends(require_roles(UserRole.professor, UserRole.admin)),
    service: AssignmentService = Depends(get_assignment_service),
):
    """Create an assignment owned by the current professor."""
    return service.create(data, current_user)


@router.get("", response_model=List[AssignmentResponse])
async def list_assignments(
    current_user: User = Depends(get_current_active_user),
    service: AssignmentService = Depends(get_assignment_service),
):
    return service.list_for(current_user)


@router.get("/{assignment_id}", response_model=AssignmentResponse)
async def get_assignment(
    assignment_id: str,
    current_user: User = Depends(get_current_active_user),
    service: AssignmentService = Depends(get_assignment_service),
):
    return service.get_visible(assignment_id, current_user)


@router.patch("/{assignment_id}", response_model=AssignmentResponse)
async def update_assignment(
    assignment_id: str,
    data: AssignmentUpdate,
    current_user: User = Depends(get_current_active_user),
    service: AssignmentService = Depends(get_assignment_service),
):
    assignment = service.get_managed(assignment_id, current_user)
    return service.update(assignment, data)


@router.delete("/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_assignment(
    assignment_id: str,
    current_user: User = Depends(get_current_active_user),
    service: AssignmentService = Depends(get_assignment_service),
    processor: ContentProcessor = Depends(get_content_processor),
):
    """Delete an assignment together with its submissions and feedback."""
    assignment = service.get_managed(assignment_id, current_user)
    service.delete(assignment, processor)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
