# gorder

`gorder` is a library of building blocks for an event-driven ordering
system. Three services talk to each other through a RabbitMQ broker:

- **order** takes orders from customers, asks a stock service which items
  are available, stores a pending order and publishes it on the
  `order.created` queue.
- **payment** consumes new orders, creates a payment link for each one and
  turns payment-provider webhooks into `order.paid` events.
- **kitchen** consumes paid orders, cooks them and marks them `ready`.

## Layout

| Module | What it holds |
| --- | --- |
| `gorder.config` | `Config`, `load_config` and `get_config` for the shared YAML configuration |
| `gorder.tracing` | `Span`, `start`, `trace_id`, `current_span`, and `inject` / `extract` for W3C and B3 headers |
| `gorder.broker` | exchange and queue topology (`connect`, `declare_topology`), `Delivery`, `handle_retry`, `inject_headers` / `extract_headers` |
| `gorder.decorator` | `LoggingDecorator`, `MetricsDecorator`, `TodoMetrics`, `apply_command_decorators`, `apply_query_decorators` |
| `gorder.singleton` | a keyed, lazily filled, thread-safe `Singleton` cache |
| `gorder.redis_lock` | `set_nx` / `delete` helpers and named Redis clients (`client`, `local_client`, `init_clients`) |
| `gorder.response` | the JSON envelope returned by HTTP handlers (`respond`, `trace_url`) |
| `gorder.messages` | `OrderMessage`, `ItemMessage`, `ItemWithQuantityMessage`, request types, and the `Processor`, `StockService` and `OrderService` protocols |
| `gorder.order_domain` | `Order`, `Item`, `ItemWithQuantity`, `NotFoundError`, `CreateOrderResponse`, `Repository` |
| `gorder.order_convertor` | conversions between domain objects, messages and HTTP client bodies |
| `gorder.order_memory_repository` | `MemoryOrderRepository` |
| `gorder.order_mongo_repository` | `MongoOrderRepository` |
| `gorder.order_commands` | `CreateOrderHandler`, `UpdateOrderHandler`, `pack_items` and their factories |
| `gorder.order_queries` | `GetCustomerOrderHandler` and the order `Application` |
| `gorder.order_consumer` | `OrderConsumer` for `order.paid` events |
| `gorder.order_ports` | `OrderRpcService`, `OrderHttpHandlers`, `create_http_app` |
| `gorder.payment_commands` | `CreatePaymentHandler` and `PaymentApplication` |
| `gorder.payment_processor` | `InmemProcessor`, `StripeProcessor`, `build_checkout_params` |
| `gorder.payment_consumer` | `PaymentConsumer` for `order.created` messages |
| `gorder.payment_webhook` | `compute_signature`, `construct_event` and the `PaymentHandler` webhook route |
| `gorder.kitchen_consumer` | `KitchenConsumer`, `OrderClientAdapter`, `cook` |
| `gorder.discovery` | `ConsulRegistry`, `generate_instance_id`, `register_to_consul`, `get_service_addr` |
| `gorder.net_wait` | `wait_for`, `wait_for_order_service`, `wait_for_stock_service` |
| `gorder.logging_setup` | `init_logging` and `set_formatter` |
| `gorder.http_server` | `create_app`, `run_http_server`, `run_http_server_on_addr` on Flask |

## Configuration

All services read one YAML file, with a section for each service and for
the shared infrastructure:

```yaml
order:
  service-name: order
  http-addr: 127.0.0.1:8282
  grpc-addr: 127.0.0.1:5002
payment:
  service-name: payment
  http-addr: 127.0.0.1:8284
rabbitmq:
  user: user
  password: password
  host: localhost
  port: "5672"
  max-retry: 3
mongo:
  db-name: order
  coll-name: order
redis:
  local:
    ip: 127.0.0.1
    port: 6379
```

`load_config` reads a file, or `global.yaml` inside a directory, and makes
it the current configuration. `get_config` returns the current one; on
first use it loads the file named by `GORDER_CONFIG`, or `global.yaml`, and
falls back to an empty configuration when the file does not exist.

```python
from gorder.config import load_config

config = load_config("global.yaml")
config.get("order.service-name", "")
config.get_int("rabbitmq.max-retry", 3)
config.sub("order").get("http-addr", "")
```

Keys are case-insensitive. A configuration loaded from a file lets an
environment variable named after the upper-cased key override the file
value; `stripe-key` and `endpoint-stripe-secret` are read from
`STRIPE_KEY` and `ENDPOINT_STRIPE_SECRET`. A section returned by `sub`
holds only the file values.

## Handlers and decorators

Every command or query handler is wrapped in a logging decorator around a
metrics decorator. The metrics decorator reports the duration and a
success or failure count under `querys.<name>.*`, where `<name>` is the
lower-cased class name of the command:

```python
import logging

from gorder.decorator import TodoMetrics, apply_query_decorators

handler = apply_query_decorators(my_handler, logging.getLogger("orders"), TodoMetrics())
result = handler.handle(my_query)
```

`TodoMetrics` only writes the values to the debug log. Pass any object with
an `inc(key, value)` method to collect them.

## Orders

`new_create_order_handler` builds a handler that merges repeated items
(`pack_items`), asks a `StockService` which of them are available, stores a
pending order through the repository and publishes the order as JSON on the
`order.created` queue with the trace headers attached. It raises
`ValueError` when no items are given.

Two repositories are provided: `MemoryOrderRepository`, which keeps orders
in a list seeded with one placeholder order and uses the creation
timestamp as the id, and `MongoOrderRepository`, which uses the MongoDB
document id and updates inside a transaction. Both raise `NotFoundError`
for an unknown order.

`create_http_app` serves the order API under `/api`:

- `POST /api/customer/<customer_id>/orders` with a body such as
  `{"customerId": "123", "items": [{"id": "item1", "quantity": 2}]}`
- `GET /api/customer/<customer_id>/orders/<order_id>`

Every response has status 200 and a JSON body with `errno` (0 for success,
2 for failure), `message`, `data`, `trace_id` and `trace_id_url`. An item
quantity that is not positive is rejected with errno 2.

`OrderRpcService` offers `create_order`, `get_order` and `update_order` as
plain method calls; failures are raised as `RuntimeError` or, for
`get_order`, `LookupError`.

## Payments and the kitchen

`PaymentConsumer` reads `order.created` messages and runs the
create-payment command: the `Processor` creates a link, and the order is
updated through an `OrderService` with status `waiting_for_payment` and
that link. `InmemProcessor` always returns `inmem_paymentLink`;
`StripeProcessor` creates a Stripe Checkout session over HTTP and returns
its URL.

`PaymentHandler.register_routes` adds `POST /api/webhook` to a Flask app.
The handler rejects bodies over 65536 bytes, checks the `Stripe-Signature`
header (`t=<timestamp>,v1=<hmac-sha256>`, at most 300 seconds old by
default) and, for a paid `checkout.session.completed` event, publishes the
order with status `paid` to the `order.paid` exchange.

`KitchenConsumer` reads paid orders, cooks each one (`cook` waits five
seconds by default) and updates it to status `ready`. Orders that are not
`paid` are sent back for retry.

`OrderConsumer` reads `order.paid` events and updates the stored order,
refusing any whose status is not `paid`.

## Message flow and retries

`gorder.broker.connect` opens a channel and declares the `order.created`
(direct) and `order.paid` (fanout) exchanges, a shared queue bound to the
`dlx` dead-letter exchange, and the `dlq` queue. Consumers ack a message
they handled and nack it otherwise. On failure, `handle_retry` counts the
attempt in the `x-retry-count` header, waits one second per attempt so far
and publishes the message back to its exchange and routing key. Once the
count reaches `rabbitmq.max-retry`, the message goes to `dlq` instead.

## Service infrastructure

- `ConsulRegistry` talks to a Consul agent's HTTP API. `register_to_consul`
  registers an instance with a 5-second TTL check, refreshes it every
  second in a background thread and returns a callable that deregisters.
  `get_service_addr` returns one discovered address at random and raises
  `LookupError` when there is none.
- `wait_for` polls a TCP address until it accepts a connection or the
  timeout runs out.
- `init_logging` sets the root logger to debug level with
  `time=... severity=... message=...` lines, or a prefixed human-readable
  format when `LOCAL_ENV` is true.
- `create_app` builds a Flask app that logs unhandled errors and runs each
  request in a tracing span; `run_http_server` serves it on the
  `<service>.http-addr` address.
- `gorder.redis_lock` builds Redis clients from the `redis.<name>`
  sections and offers `set_nx` and `delete` for simple locks.

## What the package does not do

- There is no stock service: nothing here stores stock, looks up items or
  reserves quantities. The order service needs a `StockService`
  implementation supplied by the caller.
- There is no RPC transport. `OrderRpcService` and `OrderClientAdapter` are
  plain Python objects; connecting them across processes is left to the
  application.
- Spans from `gorder.tracing` are kept in process only; nothing exports
  them to a trace collector.
- The package installs no commands. Services are assembled and started
  from your own code.