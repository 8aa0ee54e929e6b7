from botocore.exceptions import BotoCoreError, ClientError
from fastapi import APIRouter, Depends, Request
from sqlmodel import Session

from backoffice.backups import run_backup
from backoffice.db import get_session
from backoffice.errors import PersistenceError
from backoffice.routers.auth import require_user

router = APIRouter(prefix="/api/backups", tags=["backups"])


@router.post("/run")
def backup_now(request: Request, session: Session = Depends(get_session)):
    user = require_user(request, session)
    try:
        result = run_backup(session, user.id)
    except (RuntimeError, BotoCoreError, ClientError) as exc:
        raise PersistenceError(str(exc)) from exc
    return result
