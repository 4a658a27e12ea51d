"""Order service layer (Use Cases).

Orchestrates the order lifecycle: creation, shop transitions, delivery
assignment and confirmation, cancellation and admin settlement.  All
write operations are atomic; the service defines the unit-of-work
boundary and the repository enforces the version check.

Business rules enforced:
- Status transitions follow ``VALID_TRANSITIONS``; ``out_for_delivery``
  is reached only through assignment or take.
- Creation status is ``confirmed`` only for paid online orders.
- A delivery boy holds at most one active order: assignment flips the boy's
  availability with a conditional update in the same transaction.
- Delivery confirmation needs a matching, unexpired OTP or QR token and
  does not make the delivery boy available again.
- Customers cancel only from ``pending``/``confirmed``; admins from any
  non-terminal status.
- Settlement flags are set once; a second attempt fails.
- Variant inventory is decremented once per item at creation, floored at
  zero, best-effort.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING, Any, Collection, Dict, Optional, Tuple

import structlog
from django.db import DatabaseError, transaction
from django.db.models import QuerySet
from django.utils import timezone

from modules.delivery.exceptions import DeliveryBoyNotFound
from modules.orders.constants import (
    ASSIGNABLE_STATES,
    ASSIGNMENT_ONLY_STATES,
    AVAILABLE_FOR_PICKUP_STATES,
    CUSTOMER_CANCELLABLE_STATES,
    OrderStatus,
)
from modules.orders.events import (
    OrderAssigned,
    OrderCancelled,
    OrderCreated,
    OrderDelivered,
    OrderSettled,
    OrderStatusChanged,
)
from modules.orders.exceptions import (
    AgentUnavailable,
    AlreadyAssigned,
    AlreadySettled,
    DeliveryCodeExpired,
    InvalidDeliveryCode,
    InvalidOrderStatus,
    MissingDeliveryCode,
    NotOrderOwner,
    OrderNotFound,
    ProductNotFound,
)
from modules.orders.otp import (
    codes_match,
    generate_delivery_otp,
    generate_qr_token,
    otp_expiry,
)

if TYPE_CHECKING:
    from modules.catalog.repositories.interfaces import IProductRepository
    from modules.delivery.models import DeliveryBoy
    from modules.delivery.repositories.interfaces import IDeliveryBoyRepository
    from modules.orders.dtos import CreateOrderDTO, SettlementDTO
    from modules.orders.models import Order
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)

QR = "qr"
OTP = "otp"
SHOP = "shop"


class OrderService:
    """Application service for Order use-cases.

    Receives repositories via constructor injection (DIP).
    """

    def __init__(
        self,
        order_repository: IOrderRepository,
        product_repository: IProductRepository,
        delivery_repository: IDeliveryBoyRepository,
    ) -> None:
        self._order_repo = order_repository
        self._product_repo = product_repository
        self._delivery_repo = delivery_repository

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    @transaction.atomic
    def create_order(self, customer_id: int, dto: CreateOrderDTO) -> Order:
        """Create a new order for *customer_id*.

        Steps:
        1. Resolve every product (prices are snapshotted from the catalog).
        2. Derive the initial status from payment method and paid flag.
        3. Issue the delivery OTP and QR token.
        4. Persist order + items, initial history and ``OrderCreated``.
        5. Decrement variant inventory, best-effort.

        Raises:
            ProductNotFound: an item references an unknown product.
        """
        log = logger.bind(customer_id=customer_id, item_count=len(dto.items))
        log.info("order.creation_started")

        product_ids = [str(item.product_id) for item in dto.items]
        products = self._product_repo.get_many(product_ids)
        missing = [pid for pid in product_ids if pid not in products]
        if missing:
            raise ProductNotFound(f"Product {missing[0]} not found.")

        repo_items = []
        subtotal = Decimal("0.00")
        for item in dto.items:
            unit_price = products[str(item.product_id)].price
            subtotal += unit_price * item.quantity
            repo_items.append(
                {
                    "product_id": item.product_id,
                    "quantity": item.quantity,
                    "unit_price": unit_price,
                    "selected_size": item.selected_size,
                    "selected_color": item.selected_color,
                }
            )
        total = subtotal + dto.delivery_fee
        if dto.total is not None and dto.total != total:
            log.warning(
                "order.client_total_mismatch",
                client_total=str(dto.total),
                total=str(total),
            )

        status = OrderStatus.CONFIRMED if dto.is_prepaid else OrderStatus.PENDING
        now = timezone.now()
        order = self._order_repo.create(
            {
                "customer_id": customer_id,
                "shipping_details": dto.shipping_details.model_dump(),
                "payment_method": dto.payment_method,
                "paid": dto.paid,
                "order_notes": dto.order_notes,
                "subtotal": subtotal,
                "delivery_fee": dto.delivery_fee,
                "total": total,
                "status": status,
                "delivery_otp": generate_delivery_otp(),
                "qr_token": generate_qr_token(),
                "qr_generated_at": now,
                "otp_expires_at": otp_expiry(now),
                "order_date": now,
                "settlement_method": dto.payment_method,
                "items": repo_items,
            }
        )

        self._order_repo.add_history(
            order_id=order.id,
            new_status=status,
            user_id=customer_id,
            notes="Order created",
        )
        order.add_domain_event(
            OrderCreated(
                aggregate_id=order.id,
                customer_id=str(customer_id),
                status=status,
                total=str(total),
            )
        )
        self._order_repo.save(order, update_fields=[])

        self._decrement_inventory(order, dto)

        log.info("order.created", order_id=str(order.id), status=status)
        return self._reload(order)

    def _decrement_inventory(self, order: Order, dto: CreateOrderDTO) -> None:
        """Per-item savepoint; a failing item is logged and skipped."""
        for item in dto.items:
            if not item.tracks_variant:
                continue
            log = logger.bind(
                order_id=str(order.id),
                product_id=str(item.product_id),
                size=item.selected_size,
                color=item.selected_color,
            )
            try:
                with transaction.atomic():
                    remaining = self._product_repo.decrement_variant_stock(
                        str(item.product_id),
                        item.selected_size,
                        item.selected_color,
                        item.quantity,
                    )
            except DatabaseError as exc:
                log.error("order.inventory_decrement_failed", error=str(exc))
                continue
            if remaining is None:
                log.info("order.inventory_untracked")
            else:
                log.info(
                    "order.inventory_decremented",
                    quantity=item.quantity,
                    remaining=remaining,
                )

    # ------------------------------------------------------------------
    # Shop transitions
    # ------------------------------------------------------------------

    @transaction.atomic
    def confirm_order(self, order_id: str, shop_id: Any, user_id: int) -> Order:
        """Shop accepts a pending order.

        Raises:
            OrderNotFound, NotOrderOwner, InvalidOrderStatus
        """
        order = self._get_shop_order(order_id, shop_id)
        self._require_status(order, {OrderStatus.PENDING}, "confirm")
        return self._change_status(order, OrderStatus.CONFIRMED, user_id)

    @transaction.atomic
    def notify_delivery(self, order_id: str, shop_id: Any, user_id: int) -> Order:
        """Shop hands a confirmed order over to the delivery team.

        Raises:
            OrderNotFound, NotOrderOwner, InvalidOrderStatus
        """
        order = self._get_shop_order(order_id, shop_id)
        self._require_status(order, {OrderStatus.CONFIRMED}, "notify delivery for")
        return self._change_status(order, OrderStatus.NOTIFY_DELIVERY, user_id)

    @transaction.atomic
    def mark_delivered(self, order_id: str, shop_id: Any, user_id: int) -> Order:
        """Shop records the drop-off of an order that is out for delivery.

        Raises:
            OrderNotFound, NotOrderOwner, InvalidOrderStatus
        """
        order = self._get_shop_order(order_id, shop_id)
        self._require_status(order, {OrderStatus.OUT_FOR_DELIVERY}, "deliver")
        return self._complete_delivery(order, user_id, confirmed_via=SHOP)

    @transaction.atomic
    def update_status(
        self,
        order_id: str,
        shop_id: Any,
        user_id: int,
        new_status: str,
        notes: str = "",
        tracking_id: Optional[str] = None,
    ) -> Order:
        """Generic shop transition along the state graph.

        ``out_for_delivery`` cannot be targeted here; it requires a
        delivery boy (see ``assign_order`` / ``take_order``).

        Raises:
            OrderNotFound, NotOrderOwner, InvalidOrderStatus
        """
        order = self._get_shop_order(order_id, shop_id)
        log = logger.bind(
            order_id=str(order.id),
            current_status=order.status,
            new_status=new_status,
        )

        if new_status not in OrderStatus.values:
            raise InvalidOrderStatus(f"Unknown order status '{new_status}'.")
        if new_status in ASSIGNMENT_ONLY_STATES:
            log.warning("order.assignment_required")
            raise InvalidOrderStatus(
                "Orders go out for delivery only through assignment."
            )
        if not order.can_transition_to(new_status):
            log.warning("order.invalid_transition")
            raise InvalidOrderStatus(
                f"Cannot transition from {order.status} to {new_status}."
            )

        if tracking_id is not None:
            order.tracking_id = tracking_id
        if new_status == OrderStatus.DELIVERED:
            return self._complete_delivery(order, user_id, confirmed_via=SHOP)
        if new_status == OrderStatus.CANCELLED:
            return self._cancel(order, user_id, notes, cancelled_by=SHOP)
        return self._change_status(order, new_status, user_id, notes)

    # ------------------------------------------------------------------
    # Delivery assignment
    # ------------------------------------------------------------------

    @transaction.atomic
    def assign_order(
        self, order_id: str, boy_id: str, assigned_by: int
    ) -> Tuple[Order, DeliveryBoy]:
        """Delivery head hands an order to a delivery boy (by external id).

        Raises:
            OrderNotFound, DeliveryBoyNotFound, AlreadyAssigned,
            InvalidOrderStatus, AgentUnavailable, ConcurrentModification
        """
        order = self._get_order(order_id)
        boy = self._delivery_repo.get_by_boy_id(boy_id)
        if not boy:
            raise DeliveryBoyNotFound(f"Delivery boy {boy_id} not found.")
        order = self._assign(
            order, boy, assigned_by, ASSIGNABLE_STATES, self_assigned=False
        )
        return order, boy

    @transaction.atomic
    def take_order(self, order_id: str, delivery_boy_id: Any, user_id: int) -> Order:
        """A delivery boy picks up an unassigned order directly.

        Raises:
            OrderNotFound, DeliveryBoyNotFound, AlreadyAssigned,
            InvalidOrderStatus, AgentUnavailable, ConcurrentModification
        """
        boy = self._delivery_repo.get_by_id(delivery_boy_id)
        if not boy:
            raise DeliveryBoyNotFound(f"Delivery boy {delivery_boy_id} not found.")
        order = self._get_order(order_id)
        return self._assign(
            order, boy, user_id, AVAILABLE_FOR_PICKUP_STATES, self_assigned=True
        )

    def _assign(
        self,
        order: Order,
        boy: DeliveryBoy,
        user_id: Optional[int],
        allowed: Collection[str],
        self_assigned: bool,
    ) -> Order:
        log = logger.bind(order_id=str(order.id), boy_id=boy.boy_id)

        if order.assigned_to_id is not None:
            log.warning("order.already_assigned")
            raise AlreadyAssigned(f"Order {order.id} is already assigned.")
        verb = "take" if self_assigned else "assign"
        self._require_status(order, allowed, verb)

        if not self._delivery_repo.claim(boy.id):
            log.warning("order.agent_unavailable")
            raise AgentUnavailable(
                f"Delivery boy {boy.boy_id} is not available for assignment."
            )
        boy.is_available = False

        old_status = order.status
        order.assigned_to = boy
        order.status = OrderStatus.OUT_FOR_DELIVERY
        if not order.qr_token:
            order.qr_token = generate_qr_token()
            order.qr_generated_at = timezone.now()
        order.add_domain_event(
            OrderAssigned(
                aggregate_id=order.id,
                delivery_boy_id=str(boy.id),
                self_assigned=self_assigned,
            )
        )
        self._order_repo.save(
            order,
            update_fields=["assigned_to", "status", "qr_token", "qr_generated_at"],
        )
        self._order_repo.add_assignment(
            order.id, boy.id, assigned_by_id=user_id, is_self_assigned=self_assigned
        )
        self._order_repo.add_history(
            order_id=order.id,
            old_status=old_status,
            new_status=order.status,
            user_id=user_id,
            notes=f"Assigned to {boy.boy_id}",
        )

        log.info("order.assigned", self_assigned=self_assigned)
        return self._reload(order)

    # ------------------------------------------------------------------
    # Delivery confirmation
    # ------------------------------------------------------------------

    @transaction.atomic
    def confirm_delivery(
        self,
        order_id: str,
        delivery_boy_id: Any,
        otp: Optional[str],
        user_id: Optional[int] = None,
    ) -> Order:
        """The assigned delivery boy confirms drop-off with the customer's OTP.

        Raises:
            MissingDeliveryCode, OrderNotFound, NotOrderOwner,
            InvalidOrderStatus, InvalidDeliveryCode, DeliveryCodeExpired
        """
        if not otp:
            raise MissingDeliveryCode("Delivery OTP is required.")
        order = self._get_order(order_id)
        self._verify_delivery(order, delivery_boy_id, otp, order.delivery_otp, OTP)
        return self._complete_delivery(order, user_id, confirmed_via=OTP)

    @transaction.atomic
    def confirm_delivery_by_qr(
        self, order_id: Optional[str], boy_id: Optional[str], qr_token: Optional[str]
    ) -> Order:
        """Public QR scan: the boy identifies by external id and the token.

        Raises:
            MissingDeliveryCode, OrderNotFound, DeliveryBoyNotFound,
            NotOrderOwner, InvalidOrderStatus, InvalidDeliveryCode,
            DeliveryCodeExpired
        """
        if not (order_id and boy_id and qr_token):
            raise MissingDeliveryCode("orderId, boyId and qrToken are required.")
        order = self._get_order(order_id)
        boy = self._delivery_repo.get_by_boy_id(boy_id)
        if not boy:
            raise DeliveryBoyNotFound(f"Delivery boy {boy_id} not found.")
        self._verify_delivery(order, boy.id, qr_token, order.qr_token, QR)
        user_id = boy.user_id
        return self._complete_delivery(order, user_id, confirmed_via=QR)

    def _verify_delivery(
        self,
        order: Order,
        delivery_boy_id: Any,
        submitted: str,
        stored: str,
        channel: str,
    ) -> None:
        log = logger.bind(order_id=str(order.id), channel=channel)

        if order.assigned_to_id is None or str(order.assigned_to_id) != str(
            delivery_boy_id
        ):
            log.warning("order.delivery_not_assigned_to_caller")
            raise NotOrderOwner("Order is not assigned to this delivery boy.")
        self._require_status(order, {OrderStatus.OUT_FOR_DELIVERY}, "confirm delivery of")
        if not codes_match(submitted, stored):
            log.warning("order.delivery_code_invalid")
            raise InvalidDeliveryCode(f"Invalid delivery {channel.upper()}.")
        if order.is_delivery_code_expired():
            log.warning("order.delivery_code_expired")
            raise DeliveryCodeExpired(f"Delivery {channel.upper()} has expired.")

    def _complete_delivery(
        self, order: Order, user_id: Optional[int], confirmed_via: str
    ) -> Order:
        # Availability stays false; the delivery head releases the boy.
        if order.assigned_to_id is not None:
            self._delivery_repo.increment_deliveries(order.assigned_to_id)
        order.add_domain_event(
            OrderDelivered(
                aggregate_id=order.id,
                delivery_boy_id=str(order.assigned_to_id or ""),
                confirmed_via=confirmed_via,
            )
        )
        order = self._change_status(
            order,
            OrderStatus.DELIVERED,
            user_id,
            notes=f"Delivery confirmed via {confirmed_via}",
            emit=False,
        )
        logger.info(
            "order.delivery_confirmed",
            order_id=str(order.id),
            confirmed_via=confirmed_via,
        )
        return order

    # ------------------------------------------------------------------
    # Cancellation
    # ------------------------------------------------------------------

    @transaction.atomic
    def cancel_order(self, order_id: str, customer_id: int, notes: str = "") -> Order:
        """The ordering customer cancels while the order is still early.

        Raises:
            OrderNotFound, NotOrderOwner, InvalidOrderStatus
        """
        order = self._get_order(order_id)
        if order.customer_id != customer_id:
            raise NotOrderOwner("You can only cancel your own orders.")
        if order.status not in CUSTOMER_CANCELLABLE_STATES:
            logger.warning(
                "order.cancel_not_allowed",
                order_id=str(order.id),
                current_status=order.status,
            )
            raise InvalidOrderStatus(
                f"Order cannot be cancelled once it is {order.status}."
            )
        return self._cancel(order, customer_id, notes, cancelled_by="customer")

    @transaction.atomic
    def cancel_order_as_admin(
        self, order_id: str, user_id: int, notes: str = ""
    ) -> Order:
        """Operator cancellation from any non-terminal status.

        Raises:
            OrderNotFound, InvalidOrderStatus
        """
        order = self._get_order(order_id)
        if order.is_terminal:
            raise InvalidOrderStatus(f"Cannot cancel order in status {order.status}.")
        return self._cancel(order, user_id, notes, cancelled_by="admin")

    def _cancel(
        self, order: Order, user_id: Optional[int], notes: str, cancelled_by: str
    ) -> Order:
        order.add_domain_event(
            OrderCancelled(
                aggregate_id=order.id,
                old_status=order.status,
                cancelled_by=cancelled_by,
            )
        )
        order = self._change_status(
            order,
            OrderStatus.CANCELLED,
            user_id,
            notes=notes or "Order cancelled",
            emit=False,
        )
        logger.info("order.cancelled", order_id=str(order.id), cancelled_by=cancelled_by)
        return order

    # ------------------------------------------------------------------
    # Settlement
    # ------------------------------------------------------------------

    @transaction.atomic
    def settle_with_shop(
        self, order_id: str, dto: Optional[SettlementDTO] = None
    ) -> Order:
        """Record that the shop has been paid for a delivered order.

        ``paid_amount`` defaults to the order subtotal (delivery fee
        excluded).

        Raises:
            OrderNotFound, InvalidOrderStatus, AlreadySettled
        """
        order = self._get_order(order_id)
        self._require_status(order, {OrderStatus.DELIVERED}, "settle")
        if order.paid_to_shop:
            raise AlreadySettled(f"Order {order.id} is already settled with the shop.")

        order.paid_to_shop = True
        order.paid_amount = (
            dto.amount if dto and dto.amount is not None else order.subtotal
        )
        if dto and dto.method is not None:
            order.settlement_method = dto.method
        order.settled_at = timezone.now()
        order.add_domain_event(
            OrderSettled(aggregate_id=order.id, party="shop", amount=str(order.paid_amount))
        )
        self._order_repo.save(
            order,
            update_fields=["paid_to_shop", "paid_amount", "settlement_method", "settled_at"],
        )
        logger.info(
            "order.settled_with_shop",
            order_id=str(order.id),
            amount=str(order.paid_amount),
        )
        return self._reload(order)

    @transaction.atomic
    def receive_admin_payment(self, order_id: str) -> Order:
        """Record that the platform has received the order's payment.

        Raises:
            OrderNotFound, InvalidOrderStatus, AlreadySettled
        """
        order = self._get_order(order_id)
        self._require_status(order, {OrderStatus.DELIVERED}, "settle")
        if order.paid_to_admin:
            raise AlreadySettled(f"Payment for order {order.id} was already received.")

        order.paid_to_admin = True
        order.add_domain_event(
            OrderSettled(aggregate_id=order.id, party="admin", amount=str(order.total))
        )
        self._order_repo.save(order, update_fields=["paid_to_admin"])
        logger.info("order.admin_payment_received", order_id=str(order.id))
        return self._reload(order)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_order(self, order_id: str) -> Order:
        """Retrieve a single order by ID.

        Raises:
            OrderNotFound: if the order does not exist.
        """
        return self._get_order(order_id)

    def get_customer_order(self, order_id: str, customer_id: int) -> Order:
        order = self._get_order(order_id)
        if order.customer_id != customer_id:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def customer_orders(self, customer_id: int) -> QuerySet:
        return self._order_repo.query({"customer_id": customer_id})

    def shop_orders(self, shop_id: Any) -> QuerySet:
        return self._order_repo.query({"items__product__shop_id": shop_id})

    def available_orders(self) -> QuerySet:
        """Unassigned orders open for self-service pickup."""
        return self._order_repo.query(
            {
                "assigned_to__isnull": True,
                "status__in": sorted(AVAILABLE_FOR_PICKUP_STATES),
            }
        )

    def unassigned_orders(self) -> QuerySet:
        """Orders the shops handed to the delivery team, awaiting a boy."""
        return self._order_repo.query(
            {"assigned_to__isnull": True, "status": OrderStatus.NOTIFY_DELIVERY}
        )

    def delivery_boy_orders(self, delivery_boy_id: Any) -> QuerySet:
        return self._order_repo.query({"assigned_to_id": delivery_boy_id})

    def all_orders(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        return self._order_repo.query(filters)

    def order_stats(self, filters: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Per-status counts plus delivered revenue."""
        counts = self._order_repo.status_counts(filters)
        revenue = self._order_repo.revenue(filters)
        return {
            "total_orders": sum(counts.values()),
            "by_status": {status: counts.get(status, 0) for status in OrderStatus.values},
            "delivered_revenue": revenue["amount"],
        }

    def shop_stats(self, shop_id: Any) -> Dict[str, Any]:
        return self.order_stats({"items__product__shop_id": shop_id})

    def payout_summary(self) -> Dict[str, Any]:
        totals = self._order_repo.payout_totals()
        return {
            "pending_shop_payouts": {
                "count": totals["pending_shop_count"],
                "amount": totals["pending_shop_amount"],
            },
            "settled_shop_payouts": {
                "count": totals["settled_shop_count"],
                "amount": totals["settled_shop_amount"],
            },
            "pending_admin_receipts": {
                "count": totals["pending_admin_count"],
                "amount": totals["pending_admin_amount"],
            },
        }

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _get_order(self, order_id: Any) -> Order:
        order = self._order_repo.get_by_id(str(order_id))
        if not order:
            raise OrderNotFound(f"Order {order_id} not found.")
        return order

    def _get_shop_order(self, order_id: str, shop_id: Any) -> Order:
        order = self._get_order(order_id)
        if not self._order_repo.is_sold_by(order.id, shop_id):
            raise NotOrderOwner("Order does not contain products from your shop.")
        return order

    @staticmethod
    def _require_status(order: Order, allowed: Collection[str], verb: str) -> None:
        if order.status not in allowed:
            logger.warning(
                "order.invalid_transition",
                order_id=str(order.id),
                current_status=order.status,
                action=verb,
            )
            raise InvalidOrderStatus(
                f"Cannot {verb} an order that is {order.status}."
            )

    def _change_status(
        self,
        order: Order,
        new_status: str,
        user_id: Optional[int],
        notes: str = "",
        emit: bool = True,
    ) -> Order:
        old_status = order.status
        order.status = new_status
        update_fields = ["status", "tracking_id"]
        if new_status == OrderStatus.NOTIFY_DELIVERY:
            order.delivery_notification_at = timezone.now()
            update_fields.append("delivery_notification_at")
        if emit:
            order.add_domain_event(
                OrderStatusChanged(
                    aggregate_id=order.id,
                    old_status=old_status,
                    new_status=new_status,
                )
            )
        self._order_repo.save(order, update_fields=update_fields)
        self._order_repo.add_history(
            order_id=order.id,
            old_status=old_status,
            new_status=new_status,
            user_id=user_id,
            notes=notes,
        )
        logger.info(
            "order.status_updated",
            order_id=str(order.id),
            old_status=old_status,
            new_status=new_status,
        )
        return self._reload(order)

    def _reload(self, order: Order) -> Order:
        return self._order_repo.get_by_id(str(order.id)) or order
