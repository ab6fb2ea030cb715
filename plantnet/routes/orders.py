from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from plantnet.auth import verify_token
from plantnet.database import get_db
from plantnet.errors import NotFound
from plantnet.models import Order
from plantnet.reconciliation import OrderReconciler, get_reconciler
from plantnet.schemas import OrderOut, OrderStatusUpdate

router = APIRouter(tags=["orders"])


@router.get("/my-orders/{email}", response_model=List[OrderOut])
def customer_orders(email: str, db: Session = Depends(get_db), auth=Depends(verify_token)):
    return db.query(Order).filter_by(customer=email).order_by(Order.created_at.desc()).all()


@router.get("/manage-orders/{email}", response_model=List[OrderOut])
def seller_orders(email: str, db: Session = Depends(get_db), auth=Depends(verify_token)):
    return db.query(Order).filter_by(seller_email=email).order_by(Order.created_at.desc()).all()


@router.get("/admin-orders", response_model=List[OrderOut])
def all_orders(db: Session = Depends(get_db), auth=Depends(verify_token)):
    return db.query(Order).order_by(Order.created_at.desc()).all()


@router.patch("/orders/status/{order_id}", response_model=OrderOut)
def update_order_status(
    order_id: str,
    request: OrderStatusUpdate,
    db: Session = Depends(get_db),
    auth=Depends(verify_token)
):
    order = db.get(Order, order_id)
    if order is None:
        raise NotFound(f"Order {order_id} not found")
    order.status = request.status
    db.commit()
    db.refresh(order)
    return order


@router.delete("/orders/{order_id}")
def cancel_order(
    order_id: str,
    reconciler: OrderReconciler = Depends(get_reconciler)
):
    return {"deletedCount": reconciler.cancel_order(order_id)}
