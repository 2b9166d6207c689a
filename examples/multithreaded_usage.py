"""examples/multithreaded_usage.py - Concurrent traces demo.

Demonstrates that each thread's trace is assembled and printed on its own.
Every worker starts its own root span; the Debugger buffers finished child
spans per trace id and prints a trace only when its root ends, so spans of
concurrent requests never end up in each other's timeline.

Run:
    python examples/multithreaded_usage.py
"""

import logging
import random
import threading
import time

from tracekit import MILLISECOND, DebugConfig, Debugger, Span, catch, errorf, run

# ---------------------------------------------------------------------------
# Setup: one debugger shared by all threads
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] [thread=%(threadName)s] %(message)s",
)
logger = logging.getLogger("order_service")

debugger = Debugger(DebugConfig(trace_resolution=MILLISECOND, trace_width=60))


# ---------------------------------------------------------------------------
# Business logic
# ---------------------------------------------------------------------------


def fetch_inventory(parent: Span, product_id: int) -> int:
    with parent.child("fetch_inventory") as span:
        span.tag("product_id", product_id)
        time.sleep(random.uniform(0.005, 0.02))
        return 0 if product_id == 13 else 10


def reserve(parent: Span, product_id: int, quantity: int) -> None:
    def work(ctx):
        ctx.tag("quantity", quantity)
        stock = fetch_inventory(ctx.span, product_id)
        if stock < quantity:
            raise errorf("out of stock: product=%d", product_id)
        time.sleep(random.uniform(0.005, 0.02))

    run(work, parent=parent)


def handle_order(order_id: int, product_id: int) -> None:
    with Span(f"order-{order_id}", collector=debugger) as root:
        root.log("handling order %d", order_id)
        err = catch(reserve, root, product_id, 2)
        if err is not None:
            root.record(err)
            logger.warning("order %d failed: %s", order_id, err)


if __name__ == "__main__":
    threads = [
        threading.Thread(target=handle_order, args=(n, product), name=f"worker-{n}")
        for n, product in enumerate([7, 13, 21])
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
