"""proctemp: processor temperature alerts and a curses temperature view."""

MAJOR_REVISION = 0
MINOR_REVISION = 3

__version__ = f"{MAJOR_REVISION}.{MINOR_REVISION}"
