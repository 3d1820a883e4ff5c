from sqlalchemy.orm import declarative_base

Base = declarative_base()

from .customer import Customer  # noqa: E402,F401
from .site import Site  # noqa: E402,F401
from .worker import Worker  # noqa: E402,F401
from .shift import Shift, ShiftAssignment  # noqa: E402,F401
