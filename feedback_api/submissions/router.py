"""Submission endpoints."""
import io
import logging
from typing import List

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile, status
from sqlalchemy.orm import Session

from feedback_api.assignments.service import AssignmentService
from feedback_api.auth.service import get_current_active_user, require_roles
from feedback_api.database import get_db
from feedback_api.extraction import (
    ContentProcessingError,
    ContentProcessor,
    FileTooLargeError,
    InvalidFileError,
    UnsupportedFileTypeError,
    get_content_processor,
)
from feedback_api.models import User, UserRole
from .schemas import SubmissionCreate, SubmissionResponse
from .service import SubmissionService, to_response

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Submissions"])

students_only = require_roles(UserRole.student)


def get_submission_service(db: Session = Depends(get_db)) -> SubmissionService:
    return SubmissionService(db)


@router.post(
    "/assignments/{assignment_id}/submissions",
    response_model=SubmissionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_text(
    assignment_id: str,
    data: SubmissionCreate,
    current_user: User = Depends(students_only),
    db: Session = Depends(get_db),
    service: SubmissionService = Depends(get_submission_service),
    processor: ContentProcessor = Depends(get_content_processor),
):
    """Submit (or resubmit) text for an assignment."""
    assignment = AssignmentService(db).get_visible(assignment_id, current_user)
    submission = service.submit(assignment, current_user, data.content, processor)
    return to_response(submission, current_user)


@router.post(
    "/assignments/{assignment_id}/submissions/upload",
    response_model=SubmissionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def submit_file(
    assignment_id: str,
    file: UploadFile = File(...),
    current_user: User = Depends(students_only),
    db: Session = Depends(get_db),
    service: SubmissionService = Depends(get_submission_service),
    processor: ContentProcessor = Depends(get_content_processor),
):
    """Upload a file for an assignment; its text becomes the submission content."""
    assignment = AssignmentService(db).get_visible(assignment_id, current_user)
    # Refuse before storing anything
    service.existing_for(assignment, current_user)

    try:
        contents = await file.read()
        result = await processor.process_file(
            file=io.BytesIO(contents),
            filename=file.filename or "upload",
            subdir=assignment.id,
        )
    except FileTooLargeError as e:
        raise HTTPException(status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE, detail=str(e))
    except UnsupportedFileTypeError as e:
        raise HTTPException(status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE, detail=str(e))
    except (InvalidFileError, ContentProcessingError) as e:
        logger.warning(f"Rejected upload {file.filename}: {e}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Failed to process file: {e}")
    finally:
        await file.close()

    try:
        submission = service.submit(
            assignment,
            current_user,
            result.content,
            processor,
            file_path=result.file_path,
            original_filename=result.filename,
            mime_type=result.mime_type,
            metadata={**result.metadata, "file_size": result.file_size},
        )
    except Exception:
        processor.delete_file(result.file_path)
        raise
    return to_response(submission, current_user)


@router.get("/assignments/{assignment_id}/submissions", response_model=List[SubmissionResponse])
async def list_assignment_submissions(
    assignment_id: str,
    current_user: User = Depends(require_roles(UserRole.professor, UserRole.admin)),
    db: Session = Depends(get_db),
    service: SubmissionService = Depends(get_submission_service),
):
    assignment = AssignmentService(db).get_managed(assignment_id, current_user)
    return [to_response(s, current_user) for s in service.list_for_assignment(assignment)]


@router.get("/submissions/me", response_model=List[SubmissionResponse])
async def list_my_submissions(
    current_user: User = Depends(get_current_active_user),
    service: SubmissionService = Depends(get_submission_service),
):
    return [to_response(s, current_user) for s in service.list_for_student(current_user)]


@router.get("/submissions/{submission_id}", response_model=SubmissionResponse)
async def get_submission(
    submission_id: str,
    current_user: User = Depends(get_current_active_user),
    service: SubmissionService = Depends(get_submission_service),
):
    return to_response(service.get_visible(submission_id, current_user), current_user)


@router.delete("/submissions/{submission_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_submission(
    submission_id: str,
    current_user: User = Depends(get_current_active_user),
    service: SubmissionService = Depends(get_submission_service),
    processor: ContentProcessor = Depends(get_content_processor),
):
    """Withdraw a submission."""
    submission = service.get_visible(submission_id, current_user)
    service.delete(submission, current_user, processor)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
