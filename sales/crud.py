# ==========================================================
# sales/crud.py
# ==========================================================
import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from core.config import get_settings
from core.database import transaction
from core.errors import NotFound, ValidationError
from sales.models import Business, Customer, Product, Sale, SaleItem
from sales.schemas import SaleCreate, SaleItemIn

logger = logging.getLogger(__name__)

LINE_TOTAL_TOLERANCE = Decimal("0.01")


def _money(value) -> Decimal:
    return Decimal(str(value))


def generate_reference() -> str:
    return f"REF{datetime.now().strftime('%Y%m%d%H%M%S')}{uuid.uuid4().hex[:6].upper()}"


def compute_total(items: List[SaleItemIn]) -> Decimal:
    """Sum of the line totals supplied by the caller."""
    total = sum((_money(item.total) for item in items), Decimal("0"))
    for index, item in enumerate(items):
        expected = _money(item.quantity) * _money(item.unit_price)
        if abs(expected - _money(item.total)) > LINE_TOTAL_TOLERANCE:
            logger.warning(
                "Sale item %d total %s does not match quantity x unit price (%s)",
                index, item.total, expected,
            )
    return total


def insufficient_stock(product: Product, available: int) -> str:
    return f"Insufficient stock for product {product.name}. Available: {available}"


# ==========================================================
# ✅ QUERIES
# ==========================================================
def _sale_query(owner=None, with_items: bool = True):
    query = select(Sale)
    if with_items:
        query = query.options(selectinload(Sale.items), selectinload(Sale.customer))
    if owner is not None:
        query = query.join(Business, Business.id == Sale.business_id).where(Business.user_id == owner.id)
    return query


async def get_sale(db: AsyncSession, sale_id: int, owner=None) -> Optional[Sale]:
    result = await db.execute(
        _sale_query(owner).where(Sale.id == sale_id).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_all_sales(db: AsyncSession, owner=None, skip: int = 0, limit: int = 100):
    result = await db.execute(
        _sale_query(owner).order_by(Sale.created_at.desc(), Sale.id.desc()).offset(skip).limit(limit)
    )
    return result.scalars().all()


async def _find_sale_or_404(db: AsyncSession, sale_id: int, owner=None) -> Sale:
    result = await db.execute(_sale_query(owner, with_items=False).where(Sale.id == sale_id))
    sale = result.scalar_one_or_none()
    if sale is None:
        raise NotFound("Sale not found")
    return sale


# ==========================================================
# ✅ VALIDATION + STOCK
# ==========================================================
async def validate_sale(db: AsyncSession, data: SaleCreate, owner=None) -> Dict[int, Product]:
    """Check references and stock for every item; raise with all problems at once."""
    errors: Dict[str, List[str]] = {}

    business = await db.get(Business, data.business_id)
    if business is None or (owner is not None and business.user_id != owner.id):
        errors["business_id"] = ["The selected business is invalid."]

    customer = await db.get(Customer, data.customer_id)
    if customer is None or customer.business_id != data.business_id:
        errors["customer_id"] = ["The selected customer is invalid."]

    product_ids = {item.product_id for item in data.items}
    result = await db.execute(
        select(Product)
        .where(Product.id.in_(product_ids))
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    products = {product.id: product for product in result.scalars().all()}

    for index, item in enumerate(data.items):
        product = products.get(item.product_id)
        if product is None or product.business_id != data.business_id:
            errors[f"items.{index}.product_id"] = ["The selected product is invalid."]
            continue
        if item.quantity > product.stock_quantity:
            errors[f"items.{index}.quantity"] = [insufficient_stock(product, product.stock_quantity)]

    if errors:
        raise ValidationError(errors)
    return products


async def take_stock(db: AsyncSession, items: List[SaleItemIn], products: Dict[int, Product]):
    # conditional decrement: a concurrent sale that got there first leaves rowcount at 0
    for index, item in enumerate(items):
        result = await db.execute(
            update(Product)
            .where(Product.id == item.product_id, Product.stock_quantity >= item.quantity)
            .values(stock_quantity=Product.stock_quantity - item.quantity)
            .execution_options(synchronize_session=False)
        )
        if not result.rowcount:
            available = await db.scalar(select(Product.stock_quantity).where(Product.id == item.product_id))
            raise ValidationError(
                {f"items.{index}.quantity": [insufficient_stock(products[item.product_id], available or 0)]}
            )


async def restore_stock(db: AsyncSession, sale_id: int):
    result = await db.execute(select(SaleItem.product_id, SaleItem.quantity).where(SaleItem.sale_id == sale_id))
    for product_id, quantity in result.all():
        await db.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(stock_quantity=Product.stock_quantity + quantity)
            .execution_options(synchronize_session=False)
        )


def _add_items(db: AsyncSession, sale_id: int, items: List[SaleItemIn]):
    db.add_all([
        SaleItem(
            sale_id=sale_id,
            product_id=item.product_id,
            quantity=item.quantity,
            unit_price=_money(item.unit_price),
            total=_money(item.total),
        )
        for item in items
    ])


# ==========================================================
# ✅ CREATE / UPDATE / DELETE
# ==========================================================
async def create_sale(db: AsyncSession, data: SaleCreate, owner=None) -> Sale:
    decrement = get_settings().sales_decrement_stock

    async with transaction(db):
        products = await validate_sale(db, data, owner)

        sale = Sale(
            business_id=data.business_id,
            customer_id=data.customer_id,
            payment_status=data.payment_status.value,
            total_amount=compute_total(data.items),
            reference=generate_reference(),
        )
        db.add(sale)
        await db.flush()

        _add_items(db, sale.id, data.items)
        if decrement:
            await take_stock(db, data.items, products)

    logger.info("Sale %s created (%s) with %d items, total %s",
                sale.id, sale.reference, len(data.items), sale.total_amount)
    return await get_sale(db, sale.id)


async def update_sale(db: AsyncSession, sale_id: int, data: SaleCreate, owner=None) -> Sale:
    """Replace the sale's header fields and all of its items."""
    decrement = get_settings().sales_decrement_stock

    async with transaction(db):
        sale = await _find_sale_or_404(db, sale_id, owner)

        if decrement:
            await restore_stock(db, sale.id)
        products = await validate_sale(db, data, owner)

        await db.execute(delete(SaleItem).where(SaleItem.sale_id == sale.id))
        _add_items(db, sale.id, data.items)
        if decrement:
            await take_stock(db, data.items, products)

        sale.business_id = data.business_id
        sale.customer_id = data.customer_id
        sale.payment_status = data.payment_status.value
        sale.total_amount = compute_total(data.items)
        sale.updated_at = datetime.utcnow()

    logger.info("Sale %s updated with %d items, total %s", sale_id, len(data.items), sale.total_amount)
    return await get_sale(db, sale_id)


async def delete_sale(db: AsyncSession, sale_id: int, owner=None):
    async with transaction(db):
        sale = await _find_sale_or_404(db, sale_id, owner)
        if get_settings().sales_decrement_stock:
            await restore_stock(db, sale.id)
        await db.execute(delete(SaleItem).where(SaleItem.sale_id == sale.id))
        await db.execute(delete(Sale).where(Sale.id == sale.id).execution_options(synchronize_session=False))
    logger.info("Sale %s deleted", sale_id)


async def delete_owner_sales(db: AsyncSession, user_id: int) -> int:
    """Remove every sale recorded under the user's businesses. Runs inside the caller's transaction."""
    owned = select(Business.id).where(Business.user_id == user_id)
    sale_ids = select(Sale.id).where(Sale.business_id.in_(owned))
    await db.execute(
        delete(SaleItem).where(SaleItem.sale_id.in_(sale_ids)).execution_options(synchronize_session=False)
    )
    result = await db.execute(
        delete(Sale).where(Sale.business_id.in_(owned)).execution_options(synchronize_session=False)
    )
    return result.rowcount
