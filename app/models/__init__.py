from app.models.user import User
from app.models.location import Location
from app.models.availability import Availability
from app.models.booking import Booking
from app.models.checkout_staging import CheckoutStaging, ProcessedPaymentSession

# This makes the models directory a Python package and ensures all models are loaded
