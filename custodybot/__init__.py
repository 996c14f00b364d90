"""CustodyBot - custody schedule recurrence and calendar interoperability engine."""

__version__ = "1.0.0"
__author__ = "CustodyBot Team"
__email__ = "support@custodybot.local"
__description__ = "Custody schedule recurrence engine with iCalendar import and export"

# Package metadata
__all__ = [
    "__author__",
    "__description__",
    "__email__",
    "__version__",
]
