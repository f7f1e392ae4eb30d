#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Column types for trackpoint data.

Each class registers itself under its short column name, so that indexing an
`ActivityData` frame by that name gives back the richer type. `FIELDS` maps
`Trackpoint` fields onto these types.

"""
import numpy as np
from pandas import Timedelta

from activitycodec import tools
from activitycodec._types.base import ColumnBase, unit_view


REGISTRY = {}    # short name --> column type, filled in by the metaclass


class Registered(type):
    def __init__(cls, name, bases, namespace):
        super().__init__(name, bases, namespace)
        if namespace.get('colname'):
            REGISTRY[cls.colname] = cls


class TrackColumn(ColumnBase, metaclass=Registered):
    _metadata = ['colname', 'unit']

    colname = None
    unit = None

    def __init__(self, data, *args, **kwargs):
        super().__init__(data, *args, **kwargs)
        self._name = type(self).colname


class Altitude(TrackColumn):
    colname = 'alt'
    unit = 'm'

    def deltas(self):
        """Change since the previous *known* altitude; NaN where unknown."""
        return self.dropna().diff().reindex(self.index)

    def gain_loss(self):
        """(gain, loss) in metres, both positive."""
        return tools.elevation_change(self.values)

    @property
    def ascent(self):
        deltas = self.deltas()
        return type(self)(deltas.where(deltas > 0, 0), index=self.index)

    @property
    def descent(self):
        deltas = self.deltas()
        return type(self)(deltas.where(deltas < 0, 0), index=self.index)


class Cadence(TrackColumn):
    colname = 'cad'
    unit = 'spm'


class Distance(TrackColumn):
    colname = 'dist'
    unit = 'm'

    @unit_view
    def km(self):
        """ metres --> kilometres """
        return self / 1000


class HeartRate(TrackColumn):
    colname = 'hr'
    unit = 'bpm'


class LapNumber(TrackColumn):
    colname = 'lap'
    unit = '#'


class Coordinate(TrackColumn):
    unit = 'degrees'

    @unit_view
    def radians(self):
        """ degrees --> radians """
        return np.radians(self)


class Latitude(Coordinate):
    colname = 'lat'


class Longitude(Coordinate):
    colname = 'lon'


class Pace(TrackColumn):
    colname = 'pace'
    unit = 'sec/km'


class Speed(TrackColumn):
    colname = 'speed'
    unit = 'm/s'

    def to_pace(self):
        """ m/s --> sec/km, NaN while standing still """
        return Pace(1000 / self.where(self > 0))

    def best_pace(self):
        """Pace at the top speed as a Timedelta (None if never moving)."""
        top = self.max()
        if not top > 0:
            return None
        return Timedelta(seconds=tools.pace_from_speed(top))

    @unit_view
    def kph(self):
        """ metres/second --> kilometres/hour """
        return self * 3.6


# Trackpoint field --> column type
FIELDS = {
    'altitude_meters': Altitude,
    'cadence': Cadence,
    'distance_meters': Distance,
    'heart_rate_bpm': HeartRate,
    'latitude': Latitude,
    'longitude': Longitude,
    'speed': Speed,
    'lap': LapNumber,
}
