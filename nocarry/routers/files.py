"""Project file routes. Bytes live in object storage; we keep the metadata."""
import logging
from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.orm import Session, joinedload

from nocarry.auth import get_current_user
from nocarry.config import settings
from nocarry.database import get_db
from nocarry.errors import Forbidden, NotFound, ValidationError
from nocarry.models.activity_log import ActivityAction
from nocarry.models.project_file import ProjectFile
from nocarry.models.user import User
from nocarry.schemas.file import FileCreate, FileOut
from nocarry.services import activity_service, storage_service
from nocarry.services.permissions import require_member

logger = logging.getLogger(__name__)
router = APIRouter()


def _record_file(db: Session, project_id: str, user: User, name: str, url: str, size, mime_type) -> ProjectFile:
    record = ProjectFile(
        project_id=project_id,
        uploaded_by_id=user.user_id,
        name=name,
        url=url,
        size=size,
        mime_type=mime_type,
    )
    db.add(record)
    activity_service.record(
        db, user.user_id, project_id, ActivityAction.FILE_UPLOADED, {"file_name": name, "file_url": url}
    )
    db.commit()
    db.refresh(record)
    logger.info("File '%s' (%s) added to project %s by %s", name, record.file_id, project_id, user.user_id)
    return record


@router.get("/{project_id}/files", response_model=list[FileOut])
def list_files(project_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    require_member(db, project_id, user.user_id)
    return (
        db.query(ProjectFile)
        .options(joinedload(ProjectFile.uploaded_by))
        .filter(ProjectFile.project_id == project_id)
        .order_by(ProjectFile.created_at.desc())
        .all()
    )


@router.post("/{project_id}/files", response_model=FileOut, status_code=status.HTTP_201_CREATED)
def add_file(
    project_id: str,
    payload: FileCreate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Register a file the client already uploaded to storage."""
    require_member(db, project_id, user.user_id)
    return _record_file(db, project_id, user, payload.name, payload.url, payload.size, payload.mime_type)


@router.post("/{project_id}/files/upload", response_model=FileOut, status_code=status.HTTP_201_CREATED)
def upload_file(
    project_id: str,
    upload: UploadFile = File(...),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Upload through the API: store the bytes, then record the file."""
    require_member(db, project_id, user.user_id)
    if not settings.STORAGE_URL:
        raise ValidationError("File storage is not configured.")
    name = storage_service.clean_filename(upload.filename)

    content = upload.file.read()
    content_type = upload.content_type or "application/octet-stream"
    url = storage_service.upload(storage_service.project_path(project_id, name), content, content_type)
    return _record_file(db, project_id, user, name, url, len(content), content_type)


@router.delete("/{project_id}/files/{file_id}")
def delete_file(
    project_id: str,
    file_id: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Only the uploader may delete a file."""
    record = db.query(ProjectFile).filter(ProjectFile.file_id == file_id).first()
    if not record or record.project_id != project_id:
        raise NotFound("File not found")
    if record.uploaded_by_id != user.user_id:
        raise Forbidden("Only the uploader can delete this file.")

    path = storage_service.path_from_url(record.url)
    if storage_service.in_project(project_id, path):
        storage_service.remove(path)

    db.delete(record)
    db.commit()
    logger.info("Deleted file %s from project %s", file_id, project_id)
    return {"ok": True}
