# autoscaler/core/context.py

import contextvars

correlation_id_ctx = contextvars.ContextVar("correlation_id", default=None)
cycle_id_ctx = contextvars.ContextVar("cycle_id", default=None)
