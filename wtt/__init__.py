"""wtt - company / project / resource hierarchy store"""

__version__ = "1.0.0"
