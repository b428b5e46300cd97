#!/usr/bin/env python3
"""
Demo Data Seeder
Inserts sample hotels, each with two placeholder pictures, into the configured database.
Run after setting DATABASE_URL and STORAGE_ROOT in your .env file.
"""
import asyncio
import io
import sys
from decimal import Decimal
from pathlib import Path

from PIL import Image, ImageDraw

# Add parent directory to path to import app modules
sys.path.insert(0, str(Path(__file__).parent))

from hotels_api.database import AsyncSessionLocal, init_db, close_db
from hotels_api.models import Hotel, HotelPicture
from hotels_api.services.storage_service import get_picture_storage, store_picture

CITIES = [
    ("Paris", "France", "75001", 48.8566, 2.3522),
    ("Lyon", "France", "69001", 45.7640, 4.8357),
    ("Marseille", "France", "13001", 43.2965, 5.3698),
    ("Bordeaux", "France", "33000", 44.8378, -0.5792),
    ("Nice", "France", "06000", 43.7102, 7.2620),
]

COLORS = ["#264653", "#2a9d8f", "#e9c46a", "#f4a261", "#e76f51"]


def placeholder_picture(label: str, color: str, size=(1280, 720)) -> bytes:
    """Render a solid-color WebP picture with a label."""
    image = Image.new("RGB", size, color)
    ImageDraw.Draw(image).text((40, 40), label, fill="white")
    buffer = io.BytesIO()
    image.save(buffer, format="WEBP", quality=80)
    return buffer.getvalue()


async def seed(count: int) -> None:
    await init_db()
    storage = get_picture_storage()

    async with AsyncSessionLocal() as db:
        for i in range(count):
            city, country, zipcode, lat, lng = CITIES[i % len(CITIES)]
            hotel = Hotel(
                name=f"Hotel {city} {i + 1}",
                address1=f"{i + 1} rue de la Paix",
                zipcode=zipcode,
                city=city,
                country=country,
                lat=Decimal(str(lat)),
                lng=Decimal(str(lng)),
                description=f"A comfortable hotel in the heart of {city}.",
                max_capacity=50 + 10 * i,
                price_per_night=Decimal(80 + 15 * i),
            )
            db.add(hotel)
            await db.flush()

            for position in range(2):
                data = placeholder_picture(hotel.name, COLORS[(i + position) % len(COLORS)])
                ref = await store_picture(storage, data, "webp")
                db.add(HotelPicture(hotel_id=hotel.id, filepath=ref.path, filesize=ref.size, position=position))

            print(f"  ✅ {hotel.name}")

        await db.commit()

    await close_db()


def main():
    """Main function to seed demo hotels."""
    print("=" * 60)
    print("Hotels Demo Data Seeder")
    print("=" * 60)
    print()

    count = 10
    if len(sys.argv) >= 2:
        try:
            count = int(sys.argv[1])
        except ValueError:
            print("Usage:")
            print("  python seed_hotels.py [count]     - Insert <count> demo hotels (default: 10)")
            return

    print(f"⏳ Inserting {count} hotel(s)...")
    try:
        asyncio.run(seed(count))
        print(f"\n✅ Inserted {count} hotel(s)")
    except Exception as e:
        print(f"\n❌ Error seeding database: {str(e)}")
        sys.exit(1)


if __name__ == "__main__":
    main()
