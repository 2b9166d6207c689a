"""examples/basic_usage.py - tracekit integration demo.

Demonstrates two usage levels:
    Scenario A - traced payment: spans, log events and a printed timeline
    Scenario B - error chains: wrapping, the full +v rendering and a report
"""

import logging
import time

from tracekit import (
    MILLISECOND,
    DebugConfig,
    Debugger,
    SpanLogHandler,
    Tracer,
    as_safe,
    errorf,
    mark_safe,
    report_error,
    traced,
    wrap,
    wrapf,
)

# ---------------------------------------------------------------------------
# Standard logger setup (no changes from what a developer already has)
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.DEBUG,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("app")

debugger = Debugger(DebugConfig(trace_resolution=MILLISECOND, trace_attributes=True))


# ===========================================================================
# Scenario A: traced payment
# ===========================================================================

tracer = Tracer.start("checkout", collector=debugger)
logger.addHandler(SpanLogHandler(tracer))


@traced(tracer)
def get_balance(user_id: int) -> int:
    """Simulate a DB balance query."""
    logger.debug("querying balance for user %d", user_id)
    time.sleep(0.02)
    return 3_000


@traced(tracer)
def pay(user_id: int, amount: int) -> None:
    """Simulate a payment flow."""
    logger.info("payment attempt: user_id=%d amount=%d", user_id, amount)
    time.sleep(0.01)
    balance = get_balance(user_id)

    if balance < amount:
        raise mark_safe(errorf("insufficient funds: balance=%d requested=%d", balance, amount))

    time.sleep(0.01)
    logger.info("payment successful")


# ===========================================================================
# Scenario B: error chains
# ===========================================================================


def load_config(path: str):
    if not path.endswith(".toml"):
        raise errorf("unsupported config format %r", path)


def start_service(path: str):
    try:
        load_config(path)
    except Exception as exc:
        raise wrapf(exc, "starting service")


def main_entry(path: str):
    try:
        start_service(path)
    except Exception as exc:
        return wrap(exc)


# ---------------------------------------------------------------------------
# Run both scenarios
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    print("=" * 60)
    print("Scenario A: traced payment (timeline printed on tracer.end())")
    print("=" * 60)
    pay(user_id=101, amount=1_000)
    try:
        pay(user_id=202, amount=5_000)
    except Exception as exc:
        print("user-facing message:", as_safe(exc))
    tracer.end()

    print()
    print("=" * 60)
    print("Scenario B: error chain rendered with +v and reported")
    print("=" * 60)
    err = main_entry("service.yaml")
    print(f"{err:v}")
    print(f"{err:+v}")
    report_error(err, collector=debugger, tags={"component": "config"})
