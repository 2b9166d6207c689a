"""handler.py - Attaching standard log records to spans.

SpanLogHandler plugs tracekit into the ``logging`` pipeline: every record a
logger emits becomes a ``log`` event on the innermost span of a tracer, so
log lines appear as dots on the timeline next to the work that produced them.

Typical usage::

    import logging
    from tracekit import SpanLogHandler, Tracer

    tracer = Tracer.start("job")
    logging.getLogger().addHandler(SpanLogHandler(tracer))

    logging.getLogger("app").info("loaded %d rows", 12)   # event on tracer.tail()
"""

import logging

from .tracer import Tracer


class SpanLogHandler(logging.Handler):
    """A logging.Handler that turns records into span events.

    Each record is attached to ``tracer.tail()`` as a ``log`` event with the
    attributes ``message``, ``level`` and ``logger``. A record carrying
    exception info additionally records the exception as an ``error`` event.

    Thread-safety:
        ``logging.Handler`` serialises ``emit()`` with its own lock, and spans
        accept annotations from any thread.

    Attributes:
        tracer (Tracer): Whose tail span receives the events.

    Example:
        >>> handler = SpanLogHandler(tracer)
        >>> logging.getLogger("app").addHandler(handler)
    """

    def __init__(self, tracer: Tracer, level: int = logging.NOTSET) -> None:
        """Initialise the handler.

        Args:
            tracer: The tracer whose innermost span receives the events.
            level: Minimum level of records to attach.
        """
        super().__init__(level)
        self.tracer = tracer

    def emit(self, record: logging.LogRecord) -> None:
        try:
            span = self.tracer.tail()
            span.attach("log", {
                "message": record.getMessage(),
                "level": record.levelname,
                "logger": record.name,
            })
            if record.exc_info and record.exc_info[1] is not None:
                span.record(record.exc_info[1])
        except Exception:
            # a broken record must not break the application's logging
            self.handleError(record)
