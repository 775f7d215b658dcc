# Car Rental: Database Models
# Import all models here for SQLAlchemy discovery

from app.models.car import Car                  # noqa
from app.models.reservation import Reservation  # noqa
