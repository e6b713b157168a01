"""Enumeration types for the Kureno admin data services."""

from enum import Enum


class EntityName(str, Enum):
    """Logical entity names accepted by export and import."""

    ALL = "all"
    PRODUCTS = "products"
    CATEGORIES = "categories"
    USERS = "users"
    BLOG = "blog"
    ORDERS = "orders"
    COMMENTS = "comments"
    NOTIFICATIONS = "notifications"


class ExportFormat(str, Enum):
    JSON = "json"
    CSV = "csv"


class ImportMode(str, Enum):
    """How imported records are matched against stored ones."""

    CREATE = "create"
    UPSERT = "upsert"


class BulkAction(str, Enum):
    VERIFY = "verify"
    UNVERIFY = "unverify"
    DELETE = "delete"


class UserRole(str, Enum):
    ADMIN = "admin"
    MANAGER = "manager"
    USER = "user"


class NotificationType(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class NotificationCategory(str, Enum):
    SYSTEM = "system"
    ORDERS = "orders"
    USERS = "users"
    PRODUCTS = "products"
    REVIEWS = "reviews"
    COMMENTS = "comments"
    MESSAGES = "messages"


class NotificationPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"
