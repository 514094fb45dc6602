from decimal import Decimal
from functools import lru_cache
from typing import Optional
from uuid import UUID

from fastapi import Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import get_settings
from .errors import (
    DepositNotFoundError,
    InsufficientFundsError,
    InvalidInputError,
    NotActiveError,
    PersistenceError,
    UnauthorizedError,
)
from .logs import configure_logging
from .models import (
    AddTransactionRequest, AllowanceRequest, BalanceSummary, ChangeSecretRequest,
    ClearDataRequest, CreateDepositRequest, Deposit, DepositListResponse,
    DepositResponse, DepositStatus, InterestQuoteResponse, LedgerHistoryResponse,
    OperationResponse, ProfileResponse, RatesResponse, TermRateResponse, TransactionResponse,
    UpdateProfileRequest, UpdateRatesRequest, WithdrawDepositRequest,
)
from .service import PocketBankService

app = FastAPI(
    title="Pocket Bank API",
    description="Pocket-money ledger with fixed-term savings deposits",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@lru_cache()
def get_service() -> PocketBankService:
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_json)
    return PocketBankService.from_settings(settings)


def _persistence_failed(e: PersistenceError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))


@app.exception_handler(PersistenceError)
def persistence_error_handler(request: Request, exc: PersistenceError) -> JSONResponse:
    # raised by get_service when the snapshot cannot be loaded
    return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content={"detail": str(exc)})


@app.get("/health", tags=["System"])
def health_check():
    return {"status": "healthy", "service": "pocket-bank"}


@app.get("/balance", response_model=BalanceSummary, tags=["Balance"])
def get_balance(service: PocketBankService = Depends(get_service)) -> BalanceSummary:
    try:
        return service.get_balance_summary()
    except PersistenceError as e:
        raise _persistence_failed(e)


@app.get("/transactions", response_model=LedgerHistoryResponse, tags=["Transactions"])
def get_transactions(
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    service: PocketBankService = Depends(get_service),
) -> LedgerHistoryResponse:
    try:
        return service.get_ledger_history(limit, offset)
    except PersistenceError as e:
        raise _persistence_failed(e)


@app.post("/transactions", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED, tags=["Transactions"])
def add_transaction(request: AddTransactionRequest, service: PocketBankService = Depends(get_service)) -> TransactionResponse:
    try:
        return service.add_transaction(request)
    except InvalidInputError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except PersistenceError as e:
        raise _persistence_failed(e)


@app.post("/allowance", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED, tags=["Transactions"])
def add_allowance(request: AllowanceRequest, service: PocketBankService = Depends(get_service)) -> TransactionResponse:
    try:
        return service.add_allowance(request)
    except UnauthorizedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except InvalidInputError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except PersistenceError as e:
        raise _persistence_failed(e)


@app.post("/transactions/clear", response_model=OperationResponse, tags=["Transactions"])
def clear_transactions(request: ClearDataRequest, service: PocketBankService = Depends(get_service)) -> OperationResponse:
    try:
        return service.clear_transactions(request)
    except UnauthorizedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except PersistenceError as e:
        raise _persistence_failed(e)


@app.get("/deposits", response_model=DepositListResponse, tags=["Deposits"])
def list_deposits(
    deposit_status: Optional[DepositStatus] = Query(None, alias="status"),
    service: PocketBankService = Depends(get_service),
) -> DepositListResponse:
    try:
        return service.list_deposits(deposit_status)
    except PersistenceError as e:
        raise _persistence_failed(e)


@app.get("/deposits/quote", response_model=InterestQuoteResponse, tags=["Deposits"])
def quote_deposit(
    amount: Decimal = Query(..., gt=0),
    term_months: int = Query(...),
    service: PocketBankService = Depends(get_service),
) -> InterestQuoteResponse:
    try:
        return service.quote_deposit(amount, term_months)
    except InvalidInputError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except PersistenceError as e:
        raise _persistence_failed(e)


@app.post("/deposits", response_model=DepositResponse, status_code=status.HTTP_201_CREATED, tags=["Deposits"])
def create_deposit(request: CreateDepositRequest, service: PocketBankService = Depends(get_service)) -> DepositResponse:
    try:
        return service.create_deposit(request)
    except InsufficientFundsError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except InvalidInputError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except PersistenceError as e:
        raise _persistence_failed(e)


@app.get("/deposits/{deposit_id}", response_model=Deposit, tags=["Deposits"])
def get_deposit(deposit_id: UUID, service: PocketBankService = Depends(get_service)) -> Deposit:
    try:
        return service.get_deposit(deposit_id)
    except DepositNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Deposit {deposit_id} not found")
    except PersistenceError as e:
        raise _persistence_failed(e)


@app.post("/deposits/{deposit_id}/withdraw", response_model=DepositResponse, tags=["Deposits"])
def withdraw_deposit(
    deposit_id: UUID,
    request: WithdrawDepositRequest,
    service: PocketBankService = Depends(get_service),
) -> DepositResponse:
    try:
        return service.withdraw_deposit(deposit_id, request)
    except UnauthorizedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except DepositNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Deposit {deposit_id} not found")
    except NotActiveError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except PersistenceError as e:
        raise _persistence_failed(e)


@app.get("/rates", response_model=RatesResponse, tags=["Rates"])
def get_rates(service: PocketBankService = Depends(get_service)) -> RatesResponse:
    return service.get_rates()


@app.get("/rates/{term_months}", response_model=TermRateResponse, tags=["Rates"])
def get_rate_for_term(term_months: int, service: PocketBankService = Depends(get_service)) -> TermRateResponse:
    try:
        rate = service.get_interest_rate_for_term(term_months)
    except InvalidInputError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    return TermRateResponse(term_months=term_months, annual_rate_percent=rate)


@app.put("/rates", response_model=RatesResponse, tags=["Rates"])
def update_rates(request: UpdateRatesRequest, service: PocketBankService = Depends(get_service)) -> RatesResponse:
    try:
        return service.update_term_interest_rates(request)
    except UnauthorizedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except InvalidInputError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except PersistenceError as e:
        raise _persistence_failed(e)


@app.get("/profile", response_model=ProfileResponse, tags=["Profile"])
def get_profile(service: PocketBankService = Depends(get_service)) -> ProfileResponse:
    return service.get_profile()


@app.put("/profile", response_model=ProfileResponse, tags=["Profile"])
def update_profile(request: UpdateProfileRequest, service: PocketBankService = Depends(get_service)) -> ProfileResponse:
    try:
        return service.update_profile(request)
    except InvalidInputError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except PersistenceError as e:
        raise _persistence_failed(e)


@app.post("/profile/secret", response_model=OperationResponse, tags=["Profile"])
def change_secret(request: ChangeSecretRequest, service: PocketBankService = Depends(get_service)) -> OperationResponse:
    try:
        return service.change_secret(request)
    except UnauthorizedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    except InvalidInputError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except PersistenceError as e:
        raise _persistence_failed(e)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
