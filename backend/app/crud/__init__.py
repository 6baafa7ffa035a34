from .crud_booking import booking
from .crud_chef import chef
from .crud_review import review
from . import crud_message

# Usage: `crud.booking.get_booking(...)`, `crud.chef.search(...)`
