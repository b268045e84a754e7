# shopcore/services/customer_collection.py
import uuid
from typing import Callable, Generic, Type, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shopcore.domain import default_set
from shopcore.domain.default_set import DefaultItem
from shopcore.domain.errors import ConcurrencyConflict, InternalError
from shopcore.repos.customer_repo import CustomerRepo
from shopcore.utils.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T", bound=DefaultItem)


class CustomerCollectionService(Generic[T]):
    """
    Kolekcja z flaga is_default zapisana jako lista JSON na profilu klienta.

    Kazda zmiana to read-modify-write calej listy: polityka z default_set
    liczy nowa liste, zapis przechodzi tylko gdy wersja profilu sie nie
    zmienila (optimistic locking).
    """

    field: str
    item_type: Type[T]

    def __init__(self, db: Session):
        self.repo = CustomerRepo(db)

    def items(self, owner_id: str) -> list[T]:
        customer = self.repo.get_or_create(owner_id)
        return self._load(customer)

    def default(self, owner_id: str) -> T | None:
        return default_set.current_default(self.items(owner_id))

    def _load(self, customer) -> list[T]:
        return [self.item_type.model_validate(raw) for raw in (getattr(customer, self.field) or [])]

    def _mutate(self, owner_id: str, policy: Callable[[list[T]], list[T]]) -> list[T]:
        customer = self.repo.get_or_create(owner_id)
        version = customer.version
        updated = policy(self._load(customer))

        try:
            rowcount = self.repo.save_collection(
                owner_id,
                self.field,
                [item.model_dump(mode="json") for item in updated],
                old_version=version,
            )

            # Optimistic locking warunek na wersje
            if rowcount == 0:
                self.repo.rollback()
                raise ConcurrencyConflict()

            self.repo.commit()
        except SQLAlchemyError as e:
            self.repo.rollback()
            logger.exception(f"Blad zapisu {self.field} klienta {owner_id}")
            raise InternalError() from e

        logger.info(f"{self.field} klienta {owner_id} zapisane, nowa wersja: {version + 1}")
        return updated

    @staticmethod
    def new_id() -> str:
        return uuid.uuid4().hex
