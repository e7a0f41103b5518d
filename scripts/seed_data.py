from __future__ import annotations

import argparse
from datetime import datetime, timedelta, timezone
from uuid import uuid4

from services.checkout.app.db.database import db_session
from services.checkout.app.db.init_db import init_db
from services.checkout.app.db.models import (
    CartItem,
    CouponCode,
    Product,
    UserWelcomeDiscount,
)
from services.checkout.app.services.cart_mock import DEFAULT_PRODUCTS
from services.checkout.app.services.coupon_mock import DEFAULT_COUPONS


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed a local same-day checkout database")
    parser.add_argument("--user-id", default="u-1")
    parser.add_argument("--welcome-percentage", type=float, default=10.0)
    parser.add_argument("--welcome-days", type=int, default=30)
    parser.add_argument(
        "--with-cart",
        action="store_true",
        help="Put two products in the user's cart",
    )
    args = parser.parse_args()

    init_db()

    db = db_session()
    try:
        for product in DEFAULT_PRODUCTS:
            if db.get(Product, product.id) is None:
                db.add(
                    Product(
                        id=product.id,
                        name=product.name,
                        price=product.price,
                        prices=product.prices,
                    )
                )

        for coupon in DEFAULT_COUPONS:
            if db.get(CouponCode, coupon.id) is None:
                db.add(
                    CouponCode(
                        id=coupon.id,
                        code=coupon.code,
                        discount_type=coupon.discount_type,
                        discount_value=coupon.discount_value,
                        min_purchase=coupon.min_purchase,
                        never_expires=True,
                    )
                )

        # One unused welcome discount per user
        existing_welcome = (
            db.query(UserWelcomeDiscount)
            .filter(
                UserWelcomeDiscount.user_id == args.user_id,
                UserWelcomeDiscount.used.is_(False),
            )
            .count()
        )
        if existing_welcome == 0:
            db.add(
                UserWelcomeDiscount(
                    id=uuid4().hex,
                    user_id=args.user_id,
                    code=f"WELCOME{int(args.welcome_percentage)}",
                    discount_percentage=args.welcome_percentage,
                    expires_at=datetime.now(timezone.utc) + timedelta(days=args.welcome_days),
                )
            )

        if args.with_cart:
            for product_id, qty, weight in (
                ("prod-blue-dream", 1, "7g"),
                ("prod-gummies", 2, None),
            ):
                db.add(
                    CartItem(
                        id=uuid4().hex,
                        user_id=args.user_id,
                        product_id=product_id,
                        quantity=qty,
                        selected_weight=weight,
                    )
                )

        db.commit()
        print(f"Seeded user={args.user_id} products={len(DEFAULT_PRODUCTS)}")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    raise SystemExit(main())
