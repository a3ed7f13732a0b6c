"""Errors raised for invalid use of the shelf engine"""


class ShelfError(Exception):
    pass


class DuplicateItemError(ShelfError):
    pass


class ReorderError(ShelfError):
    pass
