"""Exceptions raised by the price comparator."""


class PriceComparatorError(Exception):
    """Base class for all price comparator errors"""


class DataLoadError(PriceComparatorError):
    """The data directory could not be read at all"""
