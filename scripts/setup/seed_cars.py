# scripts/setup/seed_cars.py
"""
Insert a small demo fleet with coordinates so /cars/nearby has something to return.
Usage: python scripts/setup/seed_cars.py [--latitude 40.4168 --longitude -3.7038]
"""

import sys
import os
import argparse
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from app.database import SessionLocal, create_tables
from app.services import car_service

# (brand, model, year, price/day, north offset °, east offset °)
DEMO_FLEET = [
    ("Toyota", "Corolla", 2022, 45.0, 0.005, 0.004),
    ("Renault", "Clio", 2021, 35.0, -0.012, 0.010),
    ("Tesla", "Model 3", 2023, 95.0, 0.030, -0.020),
    ("Volkswagen", "Golf", 2020, 40.0, -0.060, 0.050),
    ("BMW", "X3", 2022, 110.0, 0.150, 0.120),
]


def main():
    parser = argparse.ArgumentParser(description="Seed demo cars around a point")
    parser.add_argument("--latitude", type=float, default=40.4168)
    parser.add_argument("--longitude", type=float, default=-3.7038)
    args = parser.parse_args()

    create_tables()
    db = SessionLocal()
    try:
        for brand, model, year, price, d_lat, d_lon in DEMO_FLEET:
            car = car_service.create_car(
                db, brand=brand, model=model, year=year, price_per_day=price,
                latitude=args.latitude + d_lat, longitude=args.longitude + d_lon,
            )
            print(f"Added #{car.id} {brand} {model} @ ({car.latitude:.4f}, {car.longitude:.4f})")
    finally:
        db.close()


if __name__ == "__main__":
    main()
