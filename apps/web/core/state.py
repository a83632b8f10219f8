"""
Application state store.

Owns everything that outlives a single view: the checkout profile, the
saved delivery address, the signed-in user and the cart. ``load()`` must run
before the first render; every mutation writes the whole affected object
back to storage immediately.
"""

import logging
from typing import Any

import pydantic
from cafe_schemas import FulfillmentType, Profile, UserRecord

from apps.web.checkout.cart import Cart
from apps.web.config import settings
from apps.web.core.exceptions import AuthenticationRequired, ValidationError
from apps.web.core.notifications import Notifier
from apps.web.core.storage import KeyValueStorage

logger = logging.getLogger(__name__)

PROFILE_KEY = "profile"
ADDRESS_KEY = "deliveryAddress"
USER_KEY = "user"
LOGIN_KEY = "loginData"


class AppState:
    """Explicit store for client-wide state with write-through persistence."""

    def __init__(
        self,
        storage: KeyValueStorage,
        notifier: Notifier | None = None,
        *,
        operator_emails: list[str] | None = None,
    ) -> None:
        self.storage = storage
        self.notifier = notifier or Notifier()
        self.operator_emails = [
            email.lower()
            for email in (
                settings.OPERATOR_EMAILS if operator_emails is None else operator_emails
            )
        ]
        self.profile = Profile()
        self.delivery_address = ""
        self.user: UserRecord | None = None
        self.login_data: dict[str, Any] | None = None
        self.cart = Cart()
        self.loaded = False

    # =========================================================================
    # Initialization
    # =========================================================================

    def load(self) -> "AppState":
        """Read persisted state. Safe to call more than once."""
        raw_profile = self.storage.read(PROFILE_KEY)
        self.profile = Profile.from_storage(raw_profile)
        if raw_profile is not None and raw_profile != self.profile.to_storage():
            logger.info("Corrected stored profile to %s", self.profile.to_storage())
            self.storage.write(PROFILE_KEY, self.profile.to_storage())

        address = self.storage.read(ADDRESS_KEY)
        self.delivery_address = address if isinstance(address, str) else ""

        raw_user = self.storage.read(USER_KEY)
        self.user = None
        if isinstance(raw_user, dict):
            try:
                self.user = UserRecord.model_validate(raw_user)
            except pydantic.ValidationError:
                logger.warning("Discarding unreadable stored user record")
                self.storage.remove(USER_KEY)

        login_data = self.storage.read(LOGIN_KEY)
        self.login_data = login_data if isinstance(login_data, dict) else None

        self.loaded = True
        return self

    # =========================================================================
    # Profile
    # =========================================================================

    def update_profile(self, **changes: Any) -> Profile:
        """
        Apply field changes and persist the complete profile.

        Args:
            **changes: Profile fields by name, e.g. ``payment_method="in-store"``.

        Raises:
            ValidationError: If a value is not acceptable for its field.
        """
        data = self.profile.model_dump()
        data.update(changes)
        try:
            profile = Profile.model_validate(data)
        except pydantic.ValidationError as e:
            error = e.errors()[0]
            raise ValidationError(
                f"Invalid profile value: {error['msg']}", field=str(error["loc"][0])
            ) from e

        self.profile = profile
        self.storage.write(PROFILE_KEY, profile.to_storage())
        return profile

    def save_delivery_address(self, address: str) -> str:
        """Persist a delivery address typed by the customer."""
        cleaned = (address or "").strip()
        if not cleaned:
            self.notifier.error("Please enter a valid address.")
            raise ValidationError("Please enter a valid address.", field="address")

        self.delivery_address = cleaned
        self.storage.write(ADDRESS_KEY, cleaned)
        self.notifier.success("Address saved.")
        return cleaned

    def resolve_delivery_address(self) -> str:
        """Address used for delivery orders, or an empty string."""
        return (self.delivery_address or self.profile.delivery_address or "").strip()

    @property
    def needs_address(self) -> bool:
        return (
            self.profile.fulfillment_type is FulfillmentType.DELIVERY
            and not self.resolve_delivery_address()
        )

    # =========================================================================
    # Session
    # =========================================================================

    def sign_in(self, user: UserRecord, credentials: dict[str, Any] | None = None) -> None:
        self.user = user
        self.login_data = dict(credentials or {})
        self.storage.write(USER_KEY, user.model_dump(mode="json"))
        self.storage.write(LOGIN_KEY, self.login_data)
        logger.info("Signed in as %s", user.email)

    def sign_out(self) -> None:
        self.user = None
        self.login_data = None
        self.storage.remove(USER_KEY)
        self.storage.remove(LOGIN_KEY)

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    def require_user(self) -> UserRecord:
        if self.user is None:
            raise AuthenticationRequired("Please sign in to continue.")
        return self.user

    @property
    def email(self) -> str:
        if self.user is not None and self.user.email:
            return self.user.email
        return settings.UNKNOWN_EMAIL

    @property
    def is_operator(self) -> bool:
        if self.user is None or not self.user.email:
            return False
        return self.user.email.lower() in self.operator_emails
