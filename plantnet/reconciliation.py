"""Checkout sessions in, confirmed orders and a payment ledger row out."""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import List

from fastapi import Depends, Request
from sqlalchemy import or_, select, update
from sqlalchemy.orm import Session

from plantnet.database import get_db
from plantnet.errors import (
    CancellationForbidden,
    GatewayError,
    NotFound,
    OrdersNotFound,
    PaymentNotCompleted,
)
from plantnet.inventory import adjust_quantity, ensure_in_stock
from plantnet.models import Order, OrderStatus, Payment
from plantnet.schemas import CheckoutRequest
from plantnet.stripe_service import CheckoutSession, StripeGateway, get_gateway

logger = logging.getLogger(__name__)


@dataclass
class CheckoutResult:
    session: CheckoutSession
    orders: List[Order]
    total: Decimal


@dataclass
class ConfirmationResult:
    transaction_id: str
    orders: List[Order]
    already_processed: bool
    payment: Payment = None


class OrderReconciler:
    def __init__(self, db: Session, gateway: StripeGateway, domain_url: str):
        self.db = db
        self.gateway = gateway
        self.domain_url = domain_url.rstrip("/")

    def create_checkout(self, request: CheckoutRequest) -> CheckoutResult:
        plants = {
            item.plantId: ensure_in_stock(self.db, item.plantId, item.quantity)
            for item in request.items
        }

        for item in request.items:
            listed = plants[item.plantId].price
            if item.price != listed:
                logger.warning(
                    "Cart price %s for plant %s differs from listing price %s; charging listing price",
                    item.price, item.plantId, listed,
                )

        total = sum(
            (plants[item.plantId].price * item.quantity for item in request.items), Decimal("0")
        )

        if len(request.items) == 1:
            cancel_url = f"{self.domain_url}/plant/{request.items[0].plantId}"
        else:
            cancel_url = f"{self.domain_url}/cart"

        session = self.gateway.create_checkout_session(
            line_items=[
                {
                    "name": plants[item.plantId].name,
                    "image": plants[item.plantId].image,
                    "price": plants[item.plantId].price,
                    "quantity": item.quantity,
                }
                for item in request.items
            ],
            customer_email=request.customer.email,
            success_url=f"{self.domain_url}/payment-success?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=cancel_url,
            metadata={"customer": request.customer.email},
        )

        orders = []
        for item in request.items:
            plant = plants[item.plantId]
            order = Order(
                plant_id=plant.id,
                transaction_id=session.id,
                customer=request.customer.email,
                seller=plant.seller,
                seller_email=plant.seller_email,
                name=plant.name,
                category=plant.category,
                image=plant.image,
                quantity=item.quantity,
                price=plant.price,
                status=OrderStatus.PENDING,
                address=request.customer.address,
            )
            self.db.add(order)
            orders.append(order)
        self.db.commit()

        logger.info(
            "Checkout session %s created for %s: %d item(s), total %s",
            session.id, request.customer.email, len(orders), total,
        )
        return CheckoutResult(session=session, orders=orders, total=total)

    def confirm_payment(self, session_id: str) -> ConfirmationResult:
        session = self.gateway.retrieve_session(session_id)
        if not session.is_paid:
            raise PaymentNotCompleted(
                f"Payment for session {session_id} is {session.payment_status or 'unknown'}"
            )
        if not session.payment_intent:
            raise GatewayError("Paid checkout session has no payment intent")

        intent_id = session.payment_intent
        try:
            # Compare-and-set claim: only the request that flips the rows owns the side effects
            claimed = self.db.execute(
                update(Order)
                .where(Order.transaction_id == session_id)
                .values(transaction_id=intent_id)
                .execution_options(synchronize_session=False)
            ).rowcount

            if not claimed:
                self.db.rollback()
                return self._already_confirmed(session_id, intent_id)

            orders = self.db.scalars(
                select(Order).where(Order.transaction_id == intent_id)
            ).all()
            for order in orders:
                adjust_quantity(self.db, order.plant_id, -order.quantity)

            payment = Payment(
                session_id=session.id,
                payment_intent_id=intent_id,
                customer=session.customer_email or session.metadata.get("customer") or orders[0].customer,
                amount=session.amount,
                currency=(session.currency or self.gateway.currency).lower(),
                status=session.payment_status,
                items=[_snapshot(order) for order in orders],
            )
            self.db.add(payment)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.info(
            "Reconciled session %s as %s: %d order(s), amount %s",
            session_id, intent_id, len(orders), payment.amount,
        )
        return ConfirmationResult(
            transaction_id=intent_id, orders=list(orders), already_processed=False, payment=payment
        )

    def _already_confirmed(self, session_id: str, intent_id: str) -> ConfirmationResult:
        orders = self.db.scalars(
            select(Order).where(Order.transaction_id == intent_id)
        ).all()
        payment = self.db.scalars(
            select(Payment).where(
                or_(Payment.payment_intent_id == intent_id, Payment.session_id == session_id)
            )
        ).first()
        if not orders and payment is None:
            raise OrdersNotFound(f"No orders found for checkout session {session_id}")

        logger.info("Session %s already reconciled as %s", session_id, intent_id)
        return ConfirmationResult(
            transaction_id=intent_id, orders=list(orders), already_processed=True, payment=payment
        )

    def cancel_order(self, order_id: str) -> int:
        order = self.db.get(Order, order_id)
        if order is None:
            raise NotFound(f"Order {order_id} not found")
        if order.status == OrderStatus.DELIVERED:
            raise CancellationForbidden()

        plant_id, quantity, transaction_id = order.plant_id, order.quantity, order.transaction_id
        # Stock only left the shelf if the order was reconciled against a payment
        paid = self.db.scalar(
            select(Payment.id).where(Payment.payment_intent_id == transaction_id)
        ) is not None

        deleted = self.db.query(Order).filter(
            Order.id == order_id,
            Order.status != OrderStatus.DELIVERED,
            Order.transaction_id == transaction_id,
        ).delete(synchronize_session=False)
        if not deleted:
            self.db.rollback()
            self.db.expire_all()
            # Confirmed, delivered or removed between the read and the delete
            return self.cancel_order(order_id)
        if paid:
            adjust_quantity(self.db, plant_id, quantity)
        self.db.commit()

        if paid:
            logger.info("Order %s cancelled, %d unit(s) of plant %s restocked", order_id, quantity, plant_id)
        else:
            logger.info("Unpaid order %s cancelled, stock of plant %s untouched", order_id, plant_id)
        return deleted


def _snapshot(order: Order) -> dict:
    return {
        "orderId": order.id,
        "plantId": order.plant_id,
        "name": order.name,
        "quantity": order.quantity,
        "price": str(order.price),
        "seller": order.seller,
    }


def get_reconciler(
    request: Request,
    db: Session = Depends(get_db),
    gateway: StripeGateway = Depends(get_gateway)
) -> OrderReconciler:
    return OrderReconciler(db, gateway, request.app.state.settings.domain_url)
