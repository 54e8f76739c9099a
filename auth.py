# auth.py
import enum
import logging
import threading
from typing import Dict, List, Optional

from exceptions import InvalidInput, NotFound
from models import Cart

logger = logging.getLogger("grocery_store.auth")


class Role(enum.Enum):
    ADMIN = "ADMIN"
    SUPPLIER = "SUPPLIER"
    CUSTOMER = "CUSTOMER"


class User:
    """A store account. Only customers carry a cart."""
    def __init__(self, username: str, password: str, role: Role):
        self.username = username
        self.password = password
        self.role = role
        self.cart = Cart() if role is Role.CUSTOMER else None

    @property
    def is_customer(self):
        return self.role is Role.CUSTOMER

    def __repr__(self):
        return f"User({self.username!r}, {self.role.value})"


def create_user(role, username: str, password: str) -> User:
    """Build a user for a role name such as ``"admin"`` or a :class:`Role`."""
    if not username or not password:
        raise InvalidInput("Username and password are required.")
    if not isinstance(role, Role):
        try:
            role = Role(str(role).upper())
        except ValueError:
            raise InvalidInput(f"Invalid user role: {role}") from None
    return User(username, password, role)


def authenticate(users: Dict[str, User], username: str, password: str) -> Optional[User]:
    """Return the matching user, or None when the credentials are wrong."""
    user = users.get(username)
    if user is not None and user.password == password:
        return user
    return None


DEFAULT_USERS = [
    ("ADMIN", "admin", "admin123"),
    ("SUPPLIER", "supplier", "supplier123"),
    ("CUSTOMER", "customer", "customer123"),
    ("CUSTOMER", "john_doe", "password"),
]


class UserDirectory:
    """Registered accounts, keyed by username."""
    def __init__(self):
        self._users: Dict[str, User] = {}
        self._lock = threading.Lock()

    def add_user(self, user: User):
        with self._lock:
            if user.username in self._users:
                raise InvalidInput(f"Username {user.username} already exists.")
            self._users[user.username] = user
        logger.info(f"Registered {user.role.value.lower()} {user.username}")

    def register(self, role, username: str, password: str) -> User:
        user = create_user(role, username, password)
        self.add_user(user)
        return user

    def get(self, username: str) -> User:
        with self._lock:
            user = self._users.get(username)
        if user is None:
            raise NotFound(f"User {username} not found.")
        return user

    def all_users(self) -> List[User]:
        with self._lock:
            return list(self._users.values())

    def login(self, username: str, password: str) -> Optional["Session"]:
        with self._lock:
            user = authenticate(self._users, username, password)
        if user is None:
            logger.warning(f"Failed login for {username}")
            return None
        logger.info(f"{username} logged in")
        return Session(user)

    def seed_defaults(self):
        for role, username, password in DEFAULT_USERS:
            self.register(role, username, password)


class Session:
    """One logged-in user's scope. Customers get their cart through it."""
    def __init__(self, user: User):
        self.user = user

    @property
    def username(self):
        return self.user.username

    @property
    def role(self):
        return self.user.role

    @property
    def cart(self) -> Cart:
        if not self.user.is_customer:
            raise InvalidInput(f"{self.user.role.value.title()} accounts have no cart.")
        return self.user.cart
