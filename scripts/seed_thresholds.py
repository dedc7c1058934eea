"""
Seed demo monitoring thresholds for one user.

Usage: python -m scripts.seed_thresholds <user-id>
"""
import sys
import logging

from geopulse.db.database import SessionLocal, Base, engine
from geopulse.models.models import MonitoringThreshold

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def demo_thresholds(user_id: str):
    return [
        MonitoringThreshold(
            user_id=user_id,
            region_name="Accra, Ghana",
            lat=5.6037,
            lng=-0.1870,
            hazard_type="flood",
            metric="rainfall_mm",
            operator=">",
            threshold_value=20.0,
        ),
        MonitoringThreshold(
            user_id=user_id,
            region_name="Lagos, Nigeria",
            lat=6.5244,
            lng=3.3792,
            hazard_type="heatwave",
            metric="temperature_c",
            operator=">=",
            threshold_value=35.0,
        ),
        MonitoringThreshold(
            user_id=user_id,
            region_name="Nairobi, Kenya",
            lat=-1.2921,
            lng=36.8219,
            hazard_type="drought",
            metric="soil_moisture",
            operator="<",
            threshold_value=0.1,
        ),
        MonitoringThreshold(
            user_id=user_id,
            region_name="Dar es Salaam, Tanzania",
            lat=-6.7924,
            lng=39.2083,
            hazard_type="storm",
            metric="wind_speed_kmh",
            operator=">",
            threshold_value=60.0,
        ),
    ]


def seed_thresholds(user_id: str) -> int:
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        thresholds = demo_thresholds(user_id)
        db.add_all(thresholds)
        db.commit()
    finally:
        db.close()

    logger.info(f"Seeded {len(thresholds)} monitoring thresholds for user {user_id}")
    return len(thresholds)


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print(__doc__)
        sys.exit(1)
    seed_thresholds(sys.argv[1])
