from .retry import create_retry_decorator, is_transient_error, is_uncommitted_failure

__all__ = ["create_retry_decorator", "is_transient_error", "is_uncommitted_failure"]
