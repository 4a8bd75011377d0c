"""Order submission: customer name, wire projection, POST and cart hand-off."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Iterable

import structlog

from pos_cart.api import PosApiClient
from pos_cart.cart import Cart
from pos_cart.errors import ApiError, OrderSubmissionFailed, PersistenceError, PrinterError
from pos_cart.models import (
    ZERO,
    ConfiguredLineItem,
    Notice,
    NoticeLevel,
    OrderDocument,
    OrderLine,
    OrderRecord,
)
from pos_cart.persistence import LocalStore
from pos_cart.wire import document_to_payload, extract_error_detail, parse_order_id

logger = structlog.get_logger(__name__)

NoticeSink = Callable[[Notice], None]
TicketPrinter = Callable[[OrderRecord, tuple[ConfiguredLineItem, ...]], None]


class WorkflowState(Enum):
    IDLE = "idle"
    AWAITING_CUSTOMER_NAME = "awaiting_customer_name"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class SubmissionOutcome(Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"
    IGNORED = "ignored"


@dataclass(frozen=True)
class SubmissionResult:
    outcome: SubmissionOutcome
    record: OrderRecord | None = None
    reason: str | None = None


def to_order_line(item: ConfiguredLineItem) -> OrderLine:
    return OrderLine(
        product_id=item.product.product_id,
        quantity=item.quantity,
        variant_id=item.variant.variant_id if item.variant else None,
        flavor_id=item.flavor.flavor_id if item.flavor else None,
        extras=tuple((line.extra.extra_id, line.quantity) for line in item.extras),
        sauces=tuple(sauce.sauce_id for sauce in item.sauces),
        comment=item.comment,
    )


def build_order_document(
    items: Iterable[ConfiguredLineItem],
    client_name: str,
    payment_method_id: int,
    comment: str | None = None,
) -> OrderDocument:
    """Project cart lines into the order document. Pure and repeatable.

    Without an explicit ``comment`` the line comments are joined with ``"; "``.
    """
    lines = tuple(items)
    if comment is None:
        comment = "; ".join(item.comment for item in lines if item.comment)
    return OrderDocument(
        client_name=client_name.strip(),
        payment_method_id=payment_method_id,
        comment=comment,
        items=tuple(to_order_line(item) for item in lines),
    )


class OrderWorkflow:
    """Idle -> AwaitingCustomerName -> Submitting -> Succeeded|Failed -> Idle.

    Only one submission runs at a time; a trigger while one is in flight is
    ignored. A started submission always runs to completion.
    """

    def __init__(
        self,
        cart: Cart,
        client: PosApiClient,
        store: LocalStore,
        notify: NoticeSink | None = None,
        printer: TicketPrinter | None = None,
        default_payment_method_id: int | None = None,
    ) -> None:
        self.cart = cart
        self.client = client
        self.store = store
        self.notify = notify
        self.printer = printer
        self.default_payment_method_id = default_payment_method_id
        self.last_result: SubmissionResult | None = None
        self.blocked_reason: str | None = None
        self._uncleared: tuple[int | str, tuple[ConfiguredLineItem, ...]] | None = None
        self._state = WorkflowState.IDLE
        self._state_lock = threading.Lock()
        self._in_flight = threading.Lock()

    @property
    def state(self) -> WorkflowState:
        with self._state_lock:
            return self._state

    @property
    def is_submitting(self) -> bool:
        return self.state is WorkflowState.SUBMITTING

    def _set_state(self, new_state: WorkflowState) -> None:
        with self._state_lock:
            old_state, self._state = self._state, new_state
        if old_state is not new_state:
            logger.debug("workflow_state", old=old_state.value, new=new_state.value)

    def _emit(self, level: NoticeLevel, message: str) -> None:
        if self.notify is not None:
            self.notify(Notice(level, message))

    def begin(self) -> bool:
        """Ask for the customer name.

        False (and still Idle) when the cart is empty, or when the lines of an
        already accepted order could not be cleared; ``blocked_reason`` says why.
        """
        if self.state is not WorkflowState.IDLE:
            return False
        self.blocked_reason = self._settle_uncleared()
        if self.blocked_reason is not None:
            return False
        if self.cart.is_empty():
            logger.info("submit_blocked", reason="empty_cart")
            return False
        self._set_state(WorkflowState.AWAITING_CUSTOMER_NAME)
        return True

    def cancel(self) -> None:
        """The operator closed the name prompt; nothing else happens."""
        if self.state is WorkflowState.AWAITING_CUSTOMER_NAME:
            self._set_state(WorkflowState.IDLE)

    def submit(
        self,
        client_name: str | None,
        payment_method_id: int | None = None,
        comment: str | None = None,
    ) -> SubmissionResult:
        if not self._in_flight.acquire(blocking=False):
            logger.info("submit_ignored", reason="in_flight")
            return SubmissionResult(SubmissionOutcome.IGNORED, reason="A submission is already in progress")

        try:
            result = self._run(client_name, payment_method_id, comment)
        finally:
            self._set_state(WorkflowState.IDLE)
            self._in_flight.release()
        self.last_result = result
        return result

    def _run(self, client_name: str | None, payment_method_id: int | None, comment: str | None) -> SubmissionResult:
        reason = self._settle_uncleared()
        if reason is not None:
            logger.warning("submit_blocked", reason="uncleared_order")
            self._emit(NoticeLevel.ERROR, reason)
            return SubmissionResult(SubmissionOutcome.IGNORED, reason=reason)

        if self.cart.is_empty():
            logger.info("submit_blocked", reason="empty_cart")
            return SubmissionResult(SubmissionOutcome.IGNORED, reason="Cart is empty")

        name = (client_name or "").strip()
        if not name:
            logger.info("submit_cancelled", reason="blank_name")
            return SubmissionResult(SubmissionOutcome.CANCELLED)

        self._set_state(WorkflowState.SUBMITTING)
        if payment_method_id is None:
            payment_method_id = self.default_payment_method_id
        if payment_method_id is None:
            return self._fail("No payment method selected")

        items = self.cart.snapshot()
        document = build_order_document(items, name, payment_method_id, comment)
        logger.info("submit_started", lines=len(items), payment_method_id=payment_method_id)
        try:
            body = self.client.create_order(document_to_payload(document))
            order_id = parse_order_id(body)
            if order_id is None:
                raise OrderSubmissionFailed(extract_error_detail(body) or "Response did not include an order id")
        except (ApiError, OrderSubmissionFailed) as exc:
            return self._fail(str(exc))
        return self._succeed(order_id, document, items)

    def _fail(self, reason: str) -> SubmissionResult:
        self._set_state(WorkflowState.FAILED)
        logger.warning("submit_failed", reason=reason, lines=self.cart.count())
        self._emit(NoticeLevel.ERROR, f"Order not saved: {reason}")
        return SubmissionResult(SubmissionOutcome.FAILED, reason=reason)

    def _succeed(
        self, order_id: int | str, document: OrderDocument, items: tuple[ConfiguredLineItem, ...]
    ) -> SubmissionResult:
        self._set_state(WorkflowState.SUCCEEDED)
        record = OrderRecord(
            order_id=order_id,
            document=document,
            created_at=datetime.now(timezone.utc).isoformat(),
            total=sum((item.total for item in items), ZERO),
        )
        logger.info("submit_succeeded", order_id=order_id, total=str(record.total))

        try:
            self.store.append_order(record)
        except PersistenceError as exc:
            logger.error("order_history_write_failed", order_id=order_id, error=str(exc))
            self._emit(NoticeLevel.WARNING, f"Order #{order_id} saved on the server but not in local history")

        try:
            self.cart.clear()
        except PersistenceError as exc:
            self._uncleared = (order_id, items)
            logger.error("cart_clear_failed", order_id=order_id, error=str(exc))
            self._emit(
                NoticeLevel.ERROR,
                f"Order #{order_id} created but the cart could not be cleared; it will not be sent again: {exc}",
            )
        else:
            self._emit(NoticeLevel.SUCCESS, f"Order #{order_id} created")

        self._print_ticket(record, items)
        return SubmissionResult(SubmissionOutcome.SUCCEEDED, record=record)

    def _print_ticket(self, record: OrderRecord, items: tuple[ConfiguredLineItem, ...]) -> None:
        if self.printer is None:
            return
        try:
            self.printer(record, items)
        except PrinterError as exc:
            status, detail = "PRINT_FAILED", str(exc)
            logger.warning("ticket_print_failed", order_id=record.order_id, error=detail)
            self._emit(NoticeLevel.WARNING, f"Order #{record.order_id} saved but the ticket did not print: {detail}")
        else:
            status, detail = "PRINTED", None

        try:
            self.store.record_ticket_status(record.order_id, status, detail)
        except PersistenceError as exc:
            logger.error("ticket_log_write_failed", order_id=record.order_id, error=str(exc))

    def _settle_uncleared(self) -> str | None:
        """Retry clearing the lines of an order the backend already accepted.

        Returns the reason a new submission must wait, or None. The guard is
        dropped once the cart no longer holds exactly those lines.
        """
        if self._uncleared is None:
            return None
        order_id, items = self._uncleared
        if self.cart.snapshot() != items:
            self._uncleared = None
            return None
        try:
            self.cart.clear()
        except PersistenceError as exc:
            logger.error("cart_clear_retry_failed", order_id=order_id, error=str(exc))
            return f"Order #{order_id} was already sent and its lines are still in the cart: {exc}"
        logger.info("cart_clear_retried", order_id=order_id)
        self._uncleared = None
        return None
