"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class PasswordScheme(str, Enum):
    """How users.password_hash is stored."""
    BCRYPT = "bcrypt"
    PLAINTEXT = "plaintext"


class ContactStatus(str, Enum):
    NEW = "new"
    READ = "read"
    REPLIED = "replied"
    ARCHIVED = "archived"


class CacheBackend(str, Enum):
    MEMORY = "memory"
    REDIS = "redis"
