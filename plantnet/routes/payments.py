from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from plantnet.auth import verify_token
from plantnet.database import get_db
from plantnet.errors import NotFound
from plantnet.models import Payment
from plantnet.reconciliation import OrderReconciler, get_reconciler
from plantnet.schemas import (
    CheckoutRequest,
    CheckoutResponse,
    PaymentOut,
    PaymentSuccessRequest,
    PaymentSuccessResponse,
)

router = APIRouter(tags=["payments"])


@router.post("/create-checkout-session", response_model=CheckoutResponse)
def create_checkout_session(
    request: CheckoutRequest,
    reconciler: OrderReconciler = Depends(get_reconciler)
):
    result = reconciler.create_checkout(request)
    return {"url": result.session.url, "sessionId": result.session.id}


@router.post("/payment-success", response_model=PaymentSuccessResponse)
def payment_success(
    request: PaymentSuccessRequest,
    reconciler: OrderReconciler = Depends(get_reconciler)
):
    result = reconciler.confirm_payment(request.sessionId)
    return {
        "transactionId": result.transaction_id,
        "orderIds": [order.id for order in result.orders],
        "alreadyProcessed": result.already_processed,
    }


@router.get("/payments", response_model=List[PaymentOut])
def list_payments(db: Session = Depends(get_db), auth=Depends(verify_token)):
    return db.query(Payment).order_by(Payment.created_at.desc()).all()


@router.get("/my-payments/{email}", response_model=List[PaymentOut])
def customer_payments(email: str, db: Session = Depends(get_db), auth=Depends(verify_token)):
    return db.query(Payment).filter_by(customer=email).order_by(Payment.created_at.desc()).all()


@router.get("/payment/{payment_id}", response_model=PaymentOut)
def get_payment(payment_id: str, db: Session = Depends(get_db), auth=Depends(verify_token)):
    payment = db.get(Payment, payment_id)
    if payment is None:
        # Also accept the PaymentIntent id, which is what clients hold as transactionId
        payment = db.query(Payment).filter_by(payment_intent_id=payment_id).first()
    if payment is None:
        raise NotFound(f"Payment {payment_id} not found")
    return payment
