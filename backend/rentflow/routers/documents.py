"""Signed links to private documents.

LocalDocumentStore.url() hands out `/api/documents/{token}` links for
private files; the token carries the storage path and expires after the
configured TTL. No bearer token is needed: possession of the link is the
grant.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse

from rentflow.auth.jwt import decode_token
from rentflow.services.documents import LocalDocumentStore, Visibility, get_document_store

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/{token}")
async def download_document(
    token: str,
    store: LocalDocumentStore = Depends(get_document_store),
):
    payload = decode_token(token)
    path = payload.get("sub")
    if not path or payload.get("type") != "document":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Invalid or expired document link",
        )

    try:
        target = store.resolve(path, Visibility(payload.get("visibility", "private")))
    except ValueError:
        logger.warning("Rejected document link outside storage root: %s", path)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid document link")
    if not target.is_file():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Document not found")

    return FileResponse(target, filename=target.name.split("_", 1)[-1])
