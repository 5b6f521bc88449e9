import time
import uuid
import logging
from functools import wraps
from typing import Optional

from core.prometheus_metrics import inflight_validations, prometheus_collector

logger = logging.getLogger(__name__)


def track_performance(service_name: Optional[str] = None):
    """
    Decorator to automatically track method performance

    Usage:
    @track_performance(service_name="ValidationService")
    async def my_method(self, request):
        # method implementation
    """
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            correlation_id = str(uuid.uuid4())

            actual_service_name = service_name or (args[0].__class__.__name__ if args else "Unknown")
            method_name = func.__name__

            start_time = time.time()
            success = False
            inflight_validations.inc()

            try:
                result = await func(*args, **kwargs)
                success = True
                return result

            except Exception as e:
                logger.error(f"Error in {actual_service_name}.{method_name}: {e}")
                raise

            finally:
                inflight_validations.dec()
                duration_ms = (time.time() - start_time) * 1000

                prometheus_collector.record_request(
                    service_name=actual_service_name,
                    method_name=method_name,
                    duration_seconds=duration_ms / 1000,
                    success=success
                )

                logger.debug(
                    f"Method executed: {actual_service_name}.{method_name}",
                    extra={
                        'correlation_id': correlation_id,
                        'service_name': actual_service_name,
                        'method_name': method_name,
                        'duration_ms': duration_ms,
                        'success': success
                    }
                )

        return wrapper
    return decorator
