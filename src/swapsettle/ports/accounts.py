from abc import ABC, abstractmethod


class AccountProvisionerPort(ABC):
    """Associated token account derivation and creation."""

    @property
    @abstractmethod
    def has_signer(self) -> bool:
        ...

    @abstractmethod
    def derive_account(self, owner: str, mint: str) -> str:
        ...

    @abstractmethod
    async def exists(self, address: str) -> bool:
        ...

    @abstractmethod
    async def create(self, owner: str, mint: str) -> str:
        """Create the associated account; returns the creation signature."""
        ...
