from .usage_log_writer import UsageLogWriter
from .worker_pool import OverflowPolicy, VerificationWorkerPool

__all__ = ["OverflowPolicy", "UsageLogWriter", "VerificationWorkerPool"]
