"""Populate a running registry API with categories, gifts and payment methods.

    python scripts/seed_registry.py --base-url http://127.0.0.1:8000 --admin-password ...
"""
import argparse
import asyncio

import httpx


CATEGORIES = [
    ("Habitacion del bebe", "habitacion"),
    ("Paseo", "paseo"),
    ("Bano y cuidado", "bano"),
]

GIFTS = [
    ("habitacion", {"title": "Cuna convertible", "type": "fundable", "target_amount": 35000}),
    ("habitacion", {"title": "Vigilabebes", "type": "fundable", "target_amount": 12000}),
    ("paseo", {"title": "Cochecito", "type": "fundable", "target_amount": 60000}),
    (
        "paseo",
        {
            "title": "Silla de coche",
            "type": "external",
            "external_url": "https://www.amazon.es/",
        },
    ),
    ("bano", {"title": "Aporte libre", "type": "custom"}),
]

PAYMENT_METHODS = [
    {"type": "bizum", "label": "Bizum", "value": "+34 600 000 000", "currency": "EUR"},
    {"type": "revolut", "label": "Revolut", "value": "@babyshower", "currency": "EUR"},
    {"type": "bancolombia", "label": "Bancolombia", "value": "Ahorros 000-000000-00", "currency": "COP"},
]


async def run(base_url: str, admin_password: str) -> None:
    async with httpx.AsyncClient(base_url=base_url, timeout=30.0) as client:
        res = await client.post("/auth/admin", json={"password": admin_password})
        res.raise_for_status()

        existing = {item["slug"]: item["id"] for item in (await client.get("/categories")).json()}
        category_ids: dict[str, int] = {}
        for name, slug in CATEGORIES:
            if slug in existing:
                category_ids[slug] = existing[slug]
                continue
            res = await client.post("/categories", json={"name": name, "slug": slug})
            res.raise_for_status()
            category_ids[slug] = res.json()["id"]

        titles = {
            item["title"]
            for item in (await client.get("/gifts", params={"include_hidden": True})).json()
        }
        created = 0
        for slug, gift in GIFTS:
            if gift["title"] in titles:
                continue
            res = await client.post("/gifts", json={**gift, "category_id": category_ids[slug]})
            res.raise_for_status()
            created += 1

        res = await client.put("/payment-methods", json={"payment_methods": PAYMENT_METHODS})
        res.raise_for_status()

        print(f"categories={len(category_ids)} gifts_created={created} payment_methods={len(PAYMENT_METHODS)}")


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--base-url", default="http://127.0.0.1:8000")
    parser.add_argument("--admin-password", required=True)
    args = parser.parse_args()
    asyncio.run(run(args.base_url, args.admin_password))


if __name__ == "__main__":
    main()
