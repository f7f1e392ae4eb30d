#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
pandas plumbing for the trackpoint frame and its column types.

pandas only hands back instances of a subclass when `_constructor` says so,
and only carries attributes over (through `__finalize__`) when they are
listed in `_metadata`.

"""
from functools import wraps

from pandas import DataFrame, Series

from activitycodec._util import exceptions


__all__ = ('FrameBase', 'ColumnBase',  # using * import elsewhere
           'unit_view', 'derived_column')


class _KeepsSubclass:
    _metadata = []

    @property
    def _constructor(self):
        return type(self)

    def __finalize__(self, other, method=None, **kwargs):
        for name in self._metadata:
            object.__setattr__(self, name, getattr(other, name, None))
        return self


class FrameBase(_KeepsSubclass, DataFrame):
    pass


class ColumnBase(_KeepsSubclass, Series):
    pass


class unit_view:
    """Attribute access to a column in another unit, as a plain Series.

        >>> frame['dist'].km
    """
    def __init__(self, convert):
        self.convert = convert
        self.__doc__ = convert.__doc__

    def __get__(self, column, owner=None):
        if column is None:
            return self
        return Series(self.convert(column))


def derived_column(needs, name=None):
    """Mark a frame method as deriving a new column from `needs`.

    The wrapped method may return any array-like; it comes back as a Series
    on the frame's index, named `name`.

    Raises
    ------
    RequiredColumnError
        If the frame lacks any of the `needs` columns.
    """
    def decorate(method):
        @wraps(method)
        def wrapper(frame, *args, **kwargs):
            missing = [key for key in needs if key not in frame]
            if missing:
                raise exceptions.RequiredColumnError(missing[0])
            values = method(frame, *args, **kwargs)
            return Series(values, index=frame.index, name=name)
        return wrapper
    return decorate
