# Import adapters so they register themselves
from . import french_fab  # noqa: F401
