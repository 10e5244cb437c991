from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from lendingdb.database import get_read_db
from lendingdb.security import require_admin
from lendingdb.apps.accounts import models as account_models

from . import services

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/{kind}.csv")
def download_report(
    kind: str,
    db: Session = Depends(get_read_db),
    current_user: account_models.User = Depends(require_admin),
):
    exporter = services.REPORTS.get(kind)
    if exporter is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown report {kind!r}; expected one of {', '.join(services.available_reports())}.",
        )
    return Response(
        content=exporter(db),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{services.export_filename(kind)}"'},
    )
