from __future__ import annotations

import random
from decimal import Decimal

from decouple import config
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from modules.catalog.models import Product, ProductVariant, Shop
from modules.delivery.models import DeliveryBoy, DeliveryHead


class Command(BaseCommand):
    help = "Seed database with development shops, products and delivery staff."

    def add_arguments(self, parser):
        parser.add_argument(
            "--password",
            default=config("SEED_PASSWORD", default=""),
            help="Password for every seeded account (or set SEED_PASSWORD).",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        password = options["password"]
        if not password:
            raise CommandError("Provide --password or set SEED_PASSWORD.")

        random.seed(42)
        self.stdout.write("Seeding development data...")

        users = self._seed_users(password)
        shops = self._seed_shops(users)
        products = self._seed_products(shops)
        boys = self._seed_delivery(users)

        self.stdout.write(
            self.style.SUCCESS(
                "Seed completed: "
                f"users={len(users)}, "
                f"shops={len(shops)}, "
                f"products={len(products)}, "
                f"delivery_boys={len(boys)}"
            )
        )

    def _seed_users(self, password: str) -> dict:
        User = get_user_model()
        users = {}
        for username, is_staff in (
            ("admin", True),
            ("customer", False),
            ("shop1", False),
            ("shop2", False),
            ("head", False),
            ("boy1", False),
            ("boy2", False),
        ):
            user, created = User.objects.get_or_create(
                username=username,
                defaults={"is_staff": is_staff, "email": f"{username}@quickkart.test"},
            )
            if created:
                user.set_password(password)
                user.save(update_fields=["password"])
            users[username] = user
        return users

    def _seed_shops(self, users: dict) -> list[Shop]:
        self.stdout.write("Creating shops...")
        shops = []
        for owner, name in (("shop1", "Urban Threads"), ("shop2", "Desi Drapes")):
            shop, _ = Shop.objects.get_or_create(
                owner=users[owner],
                defaults={"name": name, "approved": True, "address": "Bengaluru"},
            )
            shops.append(shop)
        return shops

    def _seed_products(self, shops: list[Shop]) -> list[Product]:
        self.stdout.write("Creating products...")
        catalog = [
            ("Cotton Kurta", "Men", "White", Decimal("799.00")),
            ("Denim Jacket", "Men", "Blue", Decimal("1899.00")),
            ("Silk Saree", "Women", "Red", Decimal("3499.00")),
            ("Linen Shirt", "Men", "Beige", Decimal("1199.00")),
            ("Anarkali Dress", "Women", "Green", Decimal("2499.00")),
            ("Printed T-Shirt", "Unisex", "Black", Decimal("499.00")),
        ]
        sizes = ["S", "M", "L", "XL"]
        products = []
        for index, (title, category, color, price) in enumerate(catalog):
            product, created = Product.objects.get_or_create(
                title=title,
                shop=shops[index % len(shops)],
                defaults={
                    "category": category,
                    "color": color,
                    "price": price,
                    "sizes": sizes,
                },
            )
            if created:
                ProductVariant.objects.bulk_create(
                    ProductVariant(
                        product=product,
                        size=size,
                        color=color,
                        quantity=random.randint(0, 25),
                    )
                    for size in sizes
                )
            products.append(product)
        return products

    def _seed_delivery(self, users: dict) -> list[DeliveryBoy]:
        self.stdout.write("Creating delivery staff...")
        DeliveryHead.objects.get_or_create(
            user=users["head"],
            defaults={
                "name": "Ravi Kumar",
                "email": "head@quickkart.test",
                "phone": "9876500000",
                "aadhar": "100000000000",
                "is_approved": True,
            },
        )
        boys = []
        for index, (name, username) in enumerate(
            (("Arjun", "boy1"), ("Vikram", "boy2")), start=1
        ):
            boy, _ = DeliveryBoy.objects.get_or_create(
                boy_id=f"DB{index:03d}",
                defaults={
                    "user": users[username],
                    "name": name,
                    "phone": f"98765{index:05d}",
                    "email": f"{username}@quickkart.test",
                    "aadhar": f"{200000000000 + index}",
                    "location_address": "Koramangala, Bengaluru",
                },
            )
            boys.append(boy)
        return boys
