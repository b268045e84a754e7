# shopcore/repos/cart_repo.py
from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session, selectinload

from shopcore.data.models.cart_line import CartLineModel


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_lines(self, owner_id: str) -> list[CartLineModel]:
        stmt = (
            select(CartLineModel)
            .where(CartLineModel.owner_id == owner_id)
            .options(selectinload(CartLineModel.product), selectinload(CartLineModel.variant))
            .order_by(CartLineModel.created_at.desc(), CartLineModel.id.desc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def get_line(self, owner_id: str, line_id: int) -> CartLineModel | None:
        stmt = select(CartLineModel).where(
            CartLineModel.id == line_id,
            CartLineModel.owner_id == owner_id,
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def find_line(self, owner_id: str, product_id: int, variant_id: int | None) -> CartLineModel | None:
        stmt = select(CartLineModel).where(
            CartLineModel.owner_id == owner_id,
            CartLineModel.product_id == product_id,
        )
        if variant_id is None:
            stmt = stmt.where(CartLineModel.variant_id.is_(None))
        else:
            stmt = stmt.where(CartLineModel.variant_id == variant_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def add_line(self, line: CartLineModel) -> CartLineModel:
        self.db.add(line)
        self.db.flush()
        return line

    def increment_quantity(self, line_id: int, quantity: int) -> int:
        #atomowe quantity = quantity + n, bez lost update przy rownoleglych dodaniach
        stmt = (
            update(CartLineModel)
            .where(CartLineModel.id == line_id)
            .values(quantity=CartLineModel.quantity + quantity)
        )
        return self.db.execute(stmt).rowcount

    def delete_line(self, line: CartLineModel) -> None:
        self.db.delete(line)
        self.db.flush()

    def delete_lines(self, owner_id: str, pairs: list[tuple[int, int | None]] | None = None) -> int:
        """Usuwa linie wlasciciela; `pairs` zaweza do (product_id, variant_id)."""
        if pairs is None:
            stmt = delete(CartLineModel).where(CartLineModel.owner_id == owner_id)
            return self.db.execute(stmt).rowcount

        removed = 0
        for product_id, variant_id in pairs:
            line = self.find_line(owner_id, product_id, variant_id)
            if line:
                self.db.delete(line)
                removed += 1
        self.db.flush()
        return removed

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
