"""examples/file_exporter_usage.py - Write timelines and reports to files.

Demonstrates how to replace the default stdout / stderr exporters with
FileExporters so traces and error reports are kept on disk. Also shows the
max_bytes rotation feature.

Run:
    python examples/file_exporter_usage.py
    cat /tmp/tracekit_demo/trace.log /tmp/tracekit_demo/report.log
"""

import logging

from tracekit import DebugConfig, Debugger, Tracer, errorf, reporter
from tracekit.exporter import FileExporter

# ---------------------------------------------------------------------------
# Setup: send both channels to files
# ---------------------------------------------------------------------------
TRACE_FILE = "/tmp/tracekit_demo/trace.log"
REPORT_FILE = "/tmp/tracekit_demo/report.log"

debugger = Debugger(DebugConfig(
    trace_output=FileExporter(TRACE_FILE, max_bytes=1 * 1024 * 1024),
    report_output=FileExporter(REPORT_FILE, title="REPORT"),
    report_file_paths=False,
))
report = reporter({"service": "payment"}, collector=debugger)

logging.basicConfig(level=logging.DEBUG)
logger = logging.getLogger("payment_service")


# ---------------------------------------------------------------------------
# Business logic
# ---------------------------------------------------------------------------


def authorize(tracer: Tracer, user_id: int, amount: int) -> bool:
    tracer.push("authorize")
    try:
        tracer.tag("amount", amount)
        if amount > 10_000:
            tracer.log("amount exceeds daily limit")
            return False
        return True
    finally:
        tracer.pop()


def charge(tracer: Tracer, user_id: int, amount: int) -> dict:
    tracer.smart_push()
    try:
        if not authorize(tracer, user_id, amount):
            raise errorf("daily limit exceeded for user %d", user_id)
        return {"status": "ok", "user_id": user_id, "charged": amount}
    finally:
        tracer.pop()


if __name__ == "__main__":
    for user_id, amount in [(1, 500), (2, 50_000)]:
        tracer = Tracer.start(f"request-{user_id}", collector=debugger)
        try:
            logger.info("receipt: %s", charge(tracer, user_id, amount))
        except Exception as exc:
            tracer.record(exc)
            report(exc)
        finally:
            tracer.end()

    print(f"Traces written to {TRACE_FILE}")
    print(f"Reports written to {REPORT_FILE}")
