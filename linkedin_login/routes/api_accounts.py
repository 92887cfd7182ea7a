import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from linkedin_login.database import get_db
from linkedin_login.exceptions import ChallengeUnresolved
from linkedin_login.models import LinkedInAccount, SessionStatus
from linkedin_login.schemas.account import (
    AccountCreate,
    AccountResponse,
    AccountStatusResponse,
    LoginRequest,
    LoginResponse,
)
from linkedin_login.services.login import Credentials, LoginOptions, LoginOrchestrator

logger = logging.getLogger(__name__)

router = APIRouter()


def get_orchestrator(request: Request) -> LoginOrchestrator:
    return request.app.state.orchestrator


def _set_status(db: Session, account: LinkedInAccount, status: SessionStatus) -> None:
    # The storage adapter writes through its own session; pick up its changes first.
    db.refresh(account)
    account.session_status = status.value
    db.commit()


@router.get("/accounts", response_model=list[AccountResponse])
def list_accounts(db: Session = Depends(get_db)):
    return db.query(LinkedInAccount).order_by(LinkedInAccount.created_at.desc(), LinkedInAccount.id.desc()).all()


@router.post("/accounts", response_model=AccountResponse)
def create_account(data: AccountCreate, db: Session = Depends(get_db)):
    account = LinkedInAccount(
        email=data.email.strip(),
        password=data.password,
        session_status=SessionStatus.IDLE.value,
    )
    db.add(account)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Account already exists")
    db.refresh(account)
    return account


@router.post("/login", response_model=LoginResponse)
async def trigger_login(
    data: LoginRequest,
    db: Session = Depends(get_db),
    orchestrator: LoginOrchestrator = Depends(get_orchestrator),
):
    account = db.query(LinkedInAccount).filter(LinkedInAccount.id == data.id).first()
    if not account:
        raise HTTPException(status_code=404, detail="Account not found")

    logger.info(f"[API] Triggering login for account ID: {account.id}")
    if orchestrator.lock.is_locked(account.email):
        return JSONResponse(
            status_code=409,
            content={"error": f"BUSY: {account.email} is already logging in", "status": SessionStatus.BUSY.value},
        )

    _set_status(db, account, SessionStatus.LOGGING_IN)
    try:
        session = await orchestrator.login(
            LoginOptions(headless=True),
            Credentials(identity=account.email, secret=account.password),
        )
    except ChallengeUnresolved as e:
        _set_status(db, account, SessionStatus.CHECKPOINT)
        return JSONResponse(status_code=500, content={"error": str(e), "status": SessionStatus.CHECKPOINT.value})
    except Exception as e:
        logger.error(f"[API] Login error for account {account.id}: {e}")
        _set_status(db, account, SessionStatus.ERROR)
        return JSONResponse(status_code=500, content={"error": str(e), "status": SessionStatus.ERROR.value})

    await session.close()
    _set_status(db, account, SessionStatus.ACTIVE)
    return LoginResponse(message="Login successful", status=SessionStatus.ACTIVE.value)


@router.get("/status/{account_id}", response_model=AccountStatusResponse)
def account_status(account_id: int, db: Session = Depends(get_db)):
    account = db.query(LinkedInAccount).filter(LinkedInAccount.id == account_id).first()
    if not account:
        raise HTTPException(status_code=404, detail="Not found")
    return account


@router.get("/logs")
async def stream_logs(request: Request):
    """Server-sent events carrying the package's log lines as they happen."""
    return request.app.state.log_hub.create_response()
