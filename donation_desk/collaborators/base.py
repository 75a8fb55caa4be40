from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional


class BlobStore(ABC):
    """Opaque file storage keyed by name."""

    @abstractmethod
    async def put(self, name: str, data: bytes) -> str:
        """Store data under name and return the reference to persist. Raises StorageError."""
        pass

    @abstractmethod
    async def get(self, ref: str) -> Optional[bytes]:
        """Return the stored bytes, or None if nothing is stored under ref."""
        pass

    @abstractmethod
    def get_url(self, ref: str) -> str:
        pass


class MessageGenerator(ABC):
    @abstractmethod
    async def generate(self, donor_name: str, cause_label: str, amount: Optional[Decimal]) -> str:
        """
        Produce a short appreciation message for a donor.
        Raises GenerationError when the upstream service cannot be used.
        """
        pass


class PosterPayload:
    def __init__(
        self,
        donor_name: str,
        cause_label: str,
        message: str,
        amount: Optional[Decimal] = None,
        show_amount: bool = False,
    ):
        self.donor_name = donor_name
        self.cause_label = cause_label
        self.message = message
        self.amount = amount
        self.show_amount = show_amount

    @property
    def display_amount(self) -> Optional[Decimal]:
        """Amount to print on the poster; only with the donor's consent."""
        if self.show_amount and self.amount:
            return self.amount
        return None


class PosterRenderer(ABC):
    @abstractmethod
    async def render(self, payload: PosterPayload) -> bytes:
        """Return PNG bytes. Raises RenderError."""
        pass


class EmailDispatcher(ABC):
    @abstractmethod
    async def send(
        self,
        to_address: str,
        donor_name: str,
        cause_label: str,
        amount: Optional[Decimal],
        message: str,
        image_bytes: bytes,
    ) -> None:
        """Deliver the poster email. Raises DeliveryError."""
        pass


def format_amount(amount: Optional[Decimal]) -> str:
    """500.00 -> '500', 1250.50 -> '1,250.50'."""
    if amount is None:
        return ""
    amount = Decimal(amount)
    if amount == amount.to_integral_value():
        return f"{int(amount):,}"
    return f"{amount:,.2f}"
