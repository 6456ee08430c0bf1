import os
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from fastapi.responses import FileResponse
from starlette.status import HTTP_201_CREATED

from studybuddy.core.deps import get_library
from studybuddy.core.security import get_api_key
from studybuddy.models.files import (
    DeleteResponse,
    FileListResponse,
    FileUpdate,
    FileView,
    ProgressRequest,
    QuizScoreRequest,
    ReconcileReport,
    SortOrder,
)
from studybuddy.services.library import FileLibrary

router = APIRouter(prefix="/v1/files", tags=["files"])


@router.get("", response_model=FileListResponse)
def list_files(
    sort: Optional[SortOrder] = Query(default=None, description="date | name | type | recent"),
    q: Optional[str] = Query(default=None, description="Filtre sur le nom"),
    limit: Optional[int] = Query(default=None, ge=1, le=500),
    library: FileLibrary = Depends(get_library),
):
    records = library.list_files(sort=sort, query=q, limit=limit)
    return FileListResponse(files=[FileView.of(r) for r in records])


@router.post("/upload", response_model=FileView, status_code=HTTP_201_CREATED)
def upload_file(
    file: UploadFile = File(...),
    library: FileLibrary = Depends(get_library),
    _: str = Depends(get_api_key),  # protège l'upload par API key
):
    # Sécuriser le nom (très basique)
    original_name = os.path.basename(file.filename or "upload.bin")
    record = library.import_file(file.file, original_name)
    return FileView.of(record)


@router.post("/reconcile", response_model=ReconcileReport)
def reconcile(
    library: FileLibrary = Depends(get_library),
    _: str = Depends(get_api_key),
):
    return library.reconcile()


@router.get("/{file_id}", response_model=FileView, summary="Détails d'un fichier (met à jour lastAccessed)")
def get_file(file_id: str, library: FileLibrary = Depends(get_library)):
    return FileView.of(library.get_details(file_id))


@router.patch("/{file_id}", response_model=FileView)
def update_file(
    file_id: str,
    body: FileUpdate,
    library: FileLibrary = Depends(get_library),
    _: str = Depends(get_api_key),
):
    return FileView.of(library.update(file_id, body))


@router.post("/{file_id}/star", response_model=FileView)
def toggle_star(
    file_id: str,
    library: FileLibrary = Depends(get_library),
    _: str = Depends(get_api_key),
):
    return FileView.of(library.toggle_star(file_id))


@router.put("/{file_id}/progress", response_model=FileView)
def update_progress(
    file_id: str,
    body: ProgressRequest,
    library: FileLibrary = Depends(get_library),
    _: str = Depends(get_api_key),
):
    return FileView.of(library.update_reading_progress(file_id, body.readingProgress))


@router.post("/{file_id}/quiz-scores", response_model=FileView)
def add_quiz_score(
    file_id: str,
    body: QuizScoreRequest,
    library: FileLibrary = Depends(get_library),
    _: str = Depends(get_api_key),
):
    return FileView.of(library.add_quiz_score(file_id, body.score))


@router.get("/{file_id}/download", response_class=FileResponse, summary="Télécharger un fichier")
def download_file(file_id: str, library: FileLibrary = Depends(get_library)):
    record = library.peek(file_id)
    return FileResponse(library.content_path(file_id), filename=record.name)


@router.delete("/{file_id}", response_model=DeleteResponse, status_code=status.HTTP_200_OK)
def delete_file(
    file_id: str,
    library: FileLibrary = Depends(get_library),
    _: str = Depends(get_api_key),
):
    if not library.delete_file(file_id):
        raise HTTPException(status_code=404, detail="File not found")
    return DeleteResponse(ok=True, id=file_id, message="Deleted")
