"""Payment endpoints - log, edit and delete payments against bills"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlalchemy.orm import Session

from oar_bills.api.v1.schemas import PaymentRequest, PaymentResponse, TransactionSchema, TransactionUpdateRequest
from oar_bills.api.dependencies import get_request_id
from oar_bills.infrastructure.database.session import get_db
from oar_bills.domain.exceptions import BillNotFoundError, TransactionNotFoundError, ValidationError
from oar_bills.services.ledger import PaymentLedger

router = APIRouter()


def _fail(db: Session, request: Request, e: Exception) -> HTTPException:
    """Roll back and map a domain error to an HTTP error"""
    db.rollback()
    request_id = get_request_id(request)

    if isinstance(e, ValidationError):
        logging.warning(f"Invalid payment: {e}", extra={"request_id": request_id})
        return HTTPException(status_code=422, detail=str(e))
    if isinstance(e, (BillNotFoundError, TransactionNotFoundError)):
        return HTTPException(status_code=404, detail=str(e))

    logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
    return HTTPException(status_code=500, detail="Internal server error")


@router.post("/bills/{bill_id}/payments", response_model=PaymentResponse, status_code=201)
def log_payment(bill_id: str, body: PaymentRequest, request: Request, db: Session = Depends(get_db)):
    """
    Record a payment for a bill.

    Full payments advance the bill to its next cycle, partial payments reduce
    the amount due. Payments dated before the current cycle are stored as
    history without touching the bill.
    """
    try:
        logged = PaymentLedger(db).log_payment(
            bill_id,
            amount=body.amount,
            paid_at=body.paid_at,
            notes=body.notes,
            advance_cycle=body.advance_cycle,
        )
        db.commit()
    except Exception as e:
        raise _fail(db, request, e)

    return PaymentResponse(transaction_id=logged.transaction.id, is_historical=logged.is_historical)


@router.put("/transactions/{transaction_id}", response_model=TransactionSchema)
def update_transaction(
    transaction_id: str,
    body: TransactionUpdateRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """Edit a payment; the bill is rebuilt from history when its cycle is affected"""
    try:
        updated = PaymentLedger(db).update_transaction(
            transaction_id,
            amount=body.amount,
            paid_at=body.paid_at,
            notes=body.notes,
        )
        db.commit()
    except Exception as e:
        raise _fail(db, request, e)

    return TransactionSchema(
        id=updated.id,
        bill_id=updated.bill_id,
        amount=updated.amount,
        paid_at=updated.paid_at,
        notes=updated.notes,
    )


@router.delete("/transactions/{transaction_id}", status_code=204)
def delete_transaction(transaction_id: str, request: Request, db: Session = Depends(get_db)):
    """Delete a payment; may revert the cycle advance it caused"""
    try:
        PaymentLedger(db).delete_transaction(transaction_id)
        db.commit()
    except Exception as e:
        raise _fail(db, request, e)

    return Response(status_code=204)
