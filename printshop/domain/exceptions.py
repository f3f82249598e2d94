class DomainException(Exception):
    kind = "domain_error"


class OrderValidationError(DomainException):
    kind = "validation_error"


class StoreNotFoundError(DomainException):
    kind = "store_not_found"


class OrderNotFoundError(DomainException):
    kind = "not_found"


class PermissionDeniedError(DomainException):
    kind = "permission_denied"


class InvalidTransitionError(DomainException):
    kind = "invalid_transition"

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Недопустимый переход статуса: {current} -> {target}")


class ConcurrentUpdateError(DomainException):
    kind = "concurrent_update"

    def __init__(self, order_id: str, expected_version: int):
        self.order_id = order_id
        self.expected_version = expected_version
        super().__init__(
            f"Заказ {order_id} был изменен параллельно (ожидалась версия {expected_version})"
        )


class RateLimitedError(DomainException):
    kind = "rate_limited"

    def __init__(self, limit: int, retry_after: int):
        self.limit = limit
        self.retry_after = retry_after
        super().__init__(f"Слишком много запросов. Повторите через {retry_after} с")


class StorageServiceError(DomainException):
    kind = "storage_unavailable"


class StoreServiceError(DomainException):
    kind = "store_service_unavailable"


class NotificationError(DomainException):
    kind = "notification_failed"
