"""Order, payment and kitchen services for an event-driven ordering system."""

__version__ = "0.1.0"