#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import numpy as np
from pandas import DataFrame, TimedeltaIndex, to_datetime

from activitycodec import tools
from activitycodec._util import exceptions
from activitycodec._types import FrameBase, derived_column, special_columns


class ActivityData(FrameBase):
    """Trackpoints as a frame, indexed by time since the first sample.

    Columns carry the short names of `special_columns.REGISTRY` (``alt``,
    ``hr``, ``speed``, ...) and come back as those richer types when
    indexed. ``start`` holds the absolute time of the first sample.
    """
    _metadata = ['start']

    @classmethod
    def from_records(cls, records, *, start=None):
        """Build from `Activity.gen_records`-style dicts.

        Columns that are empty throughout are dropped. When there is no
        cumulative distance but there are positions, distance is integrated
        from the positions.
        """
        raw = DataFrame(list(records))
        data = cls(index=raw.index)
        for field, column_cls in special_columns.FIELDS.items():
            if field in raw and raw[field].notna().any():
                column = column_cls(raw[field].astype('float64'))
                data[column.colname] = column

        data.start = start
        if 'time' in raw and raw['time'].notna().any():
            times = to_datetime(raw['time'], utc=True)
            data.start = times.dropna().iloc[0]
            data.index = TimedeltaIndex(times - data.start, name='time')

        if 'dist' not in data and {'lon', 'lat'} <= set(data.columns):
            data['dist'] = np.nancumsum(data.haversine().values)

        return data

    def __getitem__(self, key):
        """Create the illusion of Series subclasses in the DataFrame."""
        item = super().__getitem__(key)
        try:
            return special_columns.REGISTRY[key](item)
        except (KeyError, TypeError):
            return item

    @property
    def time(self):   # makes accessing the index more readable
        if isinstance(self.index, TimedeltaIndex):
            return self.index
        raise AttributeError('index is not TimedeltaIndex')

    @derived_column(needs=('lon', 'lat'), name='dists_m')
    def haversine(self, **kwargs):
        lon, lat = (self[ax].radians.values for ax in ('lon', 'lat'))
        return tools.haversine(lon, lat, **kwargs)

    def elevation(self):
        """(gain, loss) in metres."""
        return self._require('alt').gain_loss()

    def best_pace(self):
        return self._require('speed').best_pace()

    def _require(self, key):
        try:
            return self[key]
        except KeyError as e:
            raise exceptions.RequiredColumnError(key) from e
