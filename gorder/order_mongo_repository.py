"""Order repository backed by a MongoDB collection."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

from bson import ObjectId
from bson.errors import InvalidId

from gorder import tracing
from gorder.config import get_config
from gorder.order_domain import Item, NotFoundError, Order

_log = logging.getLogger(__name__)


def _item_to_document(item: Item) -> dict[str, Any]:
    return {"id": item.id, "name": item.name, "quantity": item.quantity, "priceid": item.price_id}


def _item_from_document(doc: dict[str, Any]) -> Item:
    return Item(
        id=doc.get("id", ""),
        name=doc.get("name", ""),
        quantity=int(doc.get("quantity", 0)),
        price_id=doc.get("priceid", ""),
    )


class MongoOrderRepository:
    """Stores orders as documents; the document's ObjectId is the order id."""

    def __init__(self, client: Any, db_name: str | None = None, coll_name: str | None = None) -> None:
        self._client = client
        if db_name is None or coll_name is None:
            config = get_config()
            db_name = db_name if db_name is not None else str(config.get("mongo.db-name", ""))
            coll_name = coll_name if coll_name is not None else str(config.get("mongo.coll-name", ""))
        self._db_name = db_name
        self._coll_name = coll_name

    def _collection(self) -> Any:
        return self._client[self._db_name][self._coll_name]

    @staticmethod
    def _log_with_tag(tag: str, error: BaseException | None, result: Any) -> None:
        extra = {"tag": tag, "performed_time": int(time.time()), "err": error, "result": result}
        outcome = "fail" if error is not None else "success"
        _log.info("order_repository_mongo_%s_%s", tag, outcome, extra=extra)

    @staticmethod
    def _to_document(order: Order) -> dict[str, Any]:
        return {
            "_id": ObjectId(),
            "id": order.id,
            "customer_id": order.customer_id,
            "status": order.status,
            "payment_link": order.payment_link,
            "items": [_item_to_document(item) for item in order.items or ()],
        }

    @staticmethod
    def _from_document(doc: dict[str, Any]) -> Order:
        return Order(
            id=str(doc["_id"]),
            customer_id=doc.get("customer_id", ""),
            status=doc.get("status", ""),
            payment_link=doc.get("payment_link", ""),
            items=[_item_from_document(item) for item in doc.get("items") or ()],
        )

    def create(self, order: Order) -> Order:
        """Insert ``order``, set its id to the new document id, and return it."""
        created: Order | None = None
        error: BaseException | None = None
        try:
            with tracing.start("write_to_mongo"):
                result = self._collection().insert_one(self._to_document(order))
            order.id = str(result.inserted_id)
            created = order
            return order
        except Exception as exc:
            error = exc
            raise
        finally:
            self._log_with_tag("create", error, created)

    def _find(self, order_id: str, customer_id: str, session: Any = None) -> Order:
        try:
            mongo_id = ObjectId(order_id)
        except (InvalidId, TypeError):
            raise NotFoundError(order_id) from None
        doc = self._collection().find_one({"_id": mongo_id, "customer_id": customer_id}, session=session)
        if doc is None:
            raise NotFoundError(order_id)
        return self._from_document(doc)

    def get(self, order_id: str, customer_id: str) -> Order:
        """Return the stored order, or raise NotFoundError."""
        got: Order | None = None
        error: BaseException | None = None
        try:
            got = self._find(order_id, customer_id)
            return got
        except Exception as exc:
            error = exc
            raise
        finally:
            self._log_with_tag("get", error, got)

    def update(self, order: Order, update_fn: Callable[[Order], Order]) -> None:
        """In a transaction, load the stored order, apply ``update_fn`` and save.

        The saved status and payment link are taken from ``order``.
        """
        if order is None:
            raise ValueError("got None order")
        error: BaseException | None = None
        try:
            with self._client.start_session() as session:
                with session.start_transaction():
                    old = self._find(order.id, order.customer_id, session)
                    updated = update_fn(old)
                    result = self._collection().update_one(
                        {"_id": ObjectId(old.id), "customer_id": updated.customer_id},
                        {"$set": {"status": order.status, "payment_link": order.payment_link}},
                        session=session,
                    )
                    self._log_with_tag("finish_update", None, result)
        except Exception as exc:
            error = exc
            raise
        finally:
            self._log_with_tag("after_update", error, None)