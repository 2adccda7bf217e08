"""Custom middleware components."""

from nutrition_resolver.core.middleware.request_id import RequestIDMiddleware


__all__ = ["RequestIDMiddleware"]
