import base64
import binascii
import logging
from dataclasses import asdict
from decimal import Decimal
from typing import Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from categories import list_categories
from config import get_settings
from database import get_db, init_db
from errors import FinanceError, ValidationError
from insights import MONTH_LABELS, LedgerSummary
from money import cents_to_units
from notifications import ReportDispatcher, ReportMailer
from scheduler import SchedulerManager
from schemas import (
    LoginIn,
    LoginOut,
    ProfileOut,
    ProfileUpdateIn,
    ReportIn,
    SignupIn,
    TransactionIn,
    TransactionOut,
    TransactionUpdateIn,
    UserOut,
)
from security import Identity, issue_token, resolve_token
from services import IdentityService, MetricsService, TransactionService

settings = get_settings()
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Finance Tracker")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["Content-Type", "Authorization"],
)

scheduler_manager = SchedulerManager()
report_dispatcher = ReportDispatcher(scheduler_manager, ReportMailer(settings))
bearer_scheme = HTTPBearer(auto_error=False)


@app.on_event("startup")
def startup_event():
    init_db()
    scheduler_manager.start()


@app.on_event("shutdown")
def shutdown_event():
    scheduler_manager.stop()


@app.exception_handler(FinanceError)
def finance_error_handler(request: Request, exc: FinanceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    problems = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        problems.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    error = ValidationError("; ".join(problems) or "Invalid request")
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.exception_handler(Exception)
def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"unhandled_error: path={request.url.path}")
    return JSONResponse(
        status_code=500, content={"kind": "internal_error", "message": "Server error"}
    )


def current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Identity:
    token = credentials.credentials if credentials else None
    return resolve_token(token)


def get_report_dispatcher() -> ReportDispatcher:
    return report_dispatcher


def transaction_payload(txn) -> dict:
    return TransactionOut.model_validate(txn).model_dump(mode="json")


def summary_payload(summary: LedgerSummary) -> dict:
    data = asdict(summary)
    data["balance"] = cents_to_units(summary.balance_cents)
    data["savings"] = cents_to_units(summary.savings_cents)
    data["monthly"] = [
        {"month": idx + 1, "label": label, "net_cents": net}
        for idx, (label, net) in enumerate(zip(MONTH_LABELS, summary.monthly_net_cents))
    ]
    return data


@app.get("/api/test")
def health():
    return {"message": "Backend is working fine"}


@app.post("/api/signup", status_code=201)
def signup(payload: SignupIn, db: Session = Depends(get_db)):
    IdentityService(db).register(payload)
    return {"message": "Signup successful!"}


@app.post("/api/login", response_model=LoginOut)
def login(payload: LoginIn, db: Session = Depends(get_db)):
    user = IdentityService(db).verify(payload)
    return LoginOut(
        message="Login successful!",
        token=issue_token(user.id, user.email),
        user=UserOut.model_validate(user),
    )


@app.get("/api/me", response_model=ProfileOut)
def me(identity: Identity = Depends(current_identity), db: Session = Depends(get_db)):
    return IdentityService(db).get(identity.user_id)


@app.put("/api/me", response_model=ProfileOut)
def update_me(
    payload: ProfileUpdateIn,
    identity: Identity = Depends(current_identity),
    db: Session = Depends(get_db),
):
    return IdentityService(db).update_profile(identity.user_id, payload)


@app.get("/api/categories")
def categories():
    return {"categories": list_categories()}


@app.get("/api/transactions")
def list_transactions(
    identity: Identity = Depends(current_identity), db: Session = Depends(get_db)
):
    items = TransactionService(db, identity.user_id).list()
    return {"transactions": [transaction_payload(txn) for txn in items]}


@app.post("/api/transactions", status_code=201)
def add_transaction(
    payload: TransactionIn,
    identity: Identity = Depends(current_identity),
    db: Session = Depends(get_db),
):
    txn = TransactionService(db, identity.user_id).create(payload)
    return {
        "message": "Transaction added successfully",
        "transaction": transaction_payload(txn),
    }


@app.put("/api/transactions/{transaction_id}")
def update_transaction(
    transaction_id: int,
    payload: TransactionUpdateIn,
    identity: Identity = Depends(current_identity),
    db: Session = Depends(get_db),
):
    txn = TransactionService(db, identity.user_id).update(transaction_id, payload)
    return {
        "message": "Transaction updated successfully",
        "transaction": transaction_payload(txn),
    }


@app.delete("/api/transactions/{transaction_id}")
def delete_transaction(
    transaction_id: int,
    identity: Identity = Depends(current_identity),
    db: Session = Depends(get_db),
):
    TransactionService(db, identity.user_id).delete(transaction_id)
    return {"message": "Transaction deleted successfully"}


@app.get("/api/summary")
def summary(
    identity: Identity = Depends(current_identity), db: Session = Depends(get_db)
):
    return summary_payload(MetricsService(db, identity.user_id).summary())


@app.get("/api/goal")
def goal(
    goal: Decimal = Query(...),
    identity: Identity = Depends(current_identity),
    db: Session = Depends(get_db),
):
    progress = MetricsService(db, identity.user_id).goal(goal)
    data = asdict(progress)
    data["achieved"] = progress.achieved
    return data


@app.post("/api/send-report", status_code=202)
def send_report(
    payload: ReportIn,
    identity: Identity = Depends(current_identity),
    dispatcher: ReportDispatcher = Depends(get_report_dispatcher),
):
    raw = payload.pdf_data.strip()
    if "base64," in raw:
        raw = raw.split("base64,", 1)[1]
    if not raw:
        raise ValidationError("No PDF data provided")
    try:
        pdf_bytes = base64.b64decode(raw, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValidationError("PDF data must be base64 encoded") from exc
    if not pdf_bytes:
        raise ValidationError("No PDF data provided")

    logger.info(
        f"report_requested: user_id={identity.user_id} size_bytes={len(pdf_bytes)}"
    )
    dispatcher.dispatch(identity.email, pdf_bytes)
    return {"message": "Report queued for delivery"}
