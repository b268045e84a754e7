# shopcore/services/address_service.py
from shopcore.domain import default_set
from shopcore.domain.errors import NotFound
from shopcore.domain.schemas import Address, AddressIn
from shopcore.services.customer_collection import CustomerCollectionService


class AddressService(CustomerCollectionService[Address]):
    field = "addresses"
    item_type = Address

    def list_addresses(self, owner_id: str) -> list[Address]:
        return self.items(owner_id)

    def add_address(self, owner_id: str, data: AddressIn) -> Address:
        address = Address(id=self.new_id(), **data.model_dump())
        updated = self._mutate(owner_id, lambda items: default_set.add_with_default_policy(items, address))
        return self._pick(updated, address.id)

    def update_address(self, owner_id: str, address_id: str, data: AddressIn) -> Address:
        updated = self._mutate(
            owner_id,
            lambda items: default_set.update_with_default_policy(items, address_id, data.model_dump()),
        )
        return self._pick(updated, address_id)

    def delete_address(self, owner_id: str, address_id: str) -> list[Address]:
        return self._mutate(owner_id, lambda items: default_set.remove_with_default_policy(items, address_id))

    def set_default_address(self, owner_id: str, address_id: str) -> list[Address]:
        return self._mutate(owner_id, lambda items: default_set.set_default(items, address_id))

    @staticmethod
    def _pick(items: list[Address], address_id: str) -> Address:
        address = next((a for a in items if a.id == address_id), None)
        if address is None:
            raise NotFound("Address not found")
        return address
