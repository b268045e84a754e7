# shopcore/services/payment_method_service.py
from shopcore.domain import default_set
from shopcore.domain.schemas import PaymentMethod, PaymentMethodIn
from shopcore.services.customer_collection import CustomerCollectionService


class PaymentMethodService(CustomerCollectionService[PaymentMethod]):
    field = "payment_methods"
    item_type = PaymentMethod

    def list_methods(self, owner_id: str) -> list[PaymentMethod]:
        return self.items(owner_id)

    def add_method(self, owner_id: str, data: PaymentMethodIn) -> PaymentMethod:
        method = PaymentMethod(id=self.new_id(), **data.model_dump())
        updated = self._mutate(owner_id, lambda items: default_set.add_with_default_policy(items, method))
        return next(m for m in updated if m.id == method.id)

    def delete_method(self, owner_id: str, method_id: str) -> list[PaymentMethod]:
        return self._mutate(owner_id, lambda items: default_set.remove_with_default_policy(items, method_id))

    def set_default_method(self, owner_id: str, method_id: str) -> list[PaymentMethod]:
        return self._mutate(owner_id, lambda items: default_set.set_default(items, method_id))
