#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
The canonical activity model: what a decoded activity file looks like to the
rest of an application.

All three types are immutable. Optional quantities are None when a file did
not record them; they are never filled in with zeros.

"""
from datetime import timedelta
from enum import Enum
from typing import NamedTuple, Optional, Tuple

from activitycodec._types import ActivityData


class Sport(str, Enum):
    RUN = 'run'
    CYCLING = 'cycling'
    SWIMMING = 'swimming'
    WALK = 'walk'
    CROSS_TRAINING = 'cross_training'
    OTHER = 'other'

    @classmethod
    def from_label(cls, label):
        """Map a free-form sport label (TCX ``Sport`` attribute etc.)."""
        label = (label or '').strip().lower()
        if label in ('running', 'run'):
            return cls.RUN
        if label in ('biking', 'cycling', 'bike'):
            return cls.CYCLING
        if label in ('swimming', 'swim'):
            return cls.SWIMMING
        if label in ('walking', 'walk'):
            return cls.WALK
        if 'cross' in label or 'training' in label:
            return cls.CROSS_TRAINING
        return cls.OTHER


class Trackpoint(NamedTuple):
    time: Optional[object] = None             # aware UTC datetime
    latitude: Optional[float] = None          # degrees
    longitude: Optional[float] = None
    altitude_meters: Optional[float] = None
    distance_meters: Optional[float] = None   # cumulative
    heart_rate_bpm: Optional[float] = None
    cadence: Optional[float] = None
    speed: Optional[float] = None             # m/s


class Lap(NamedTuple):
    start_time: Optional[object] = None
    total_time_seconds: float = 0.0
    distance_meters: float = 0.0
    calories: float = 0.0
    maximum_speed: Optional[float] = None
    average_heart_rate_bpm: Optional[float] = None
    maximum_heart_rate_bpm: Optional[float] = None
    cadence: Optional[float] = None
    intensity: Optional[str] = None
    trigger_method: Optional[str] = None
    trackpoints: Tuple[Trackpoint, ...] = ()

    @property
    def pace_sec_per_km(self):
        if self.distance_meters > 0:
            return self.total_time_seconds / self.distance_meters * 1000
        return None


class Activity(NamedTuple):
    sport: Sport
    id: str
    start_time: Optional[object]
    total_time_seconds: float
    distance_meters: float
    calories: float
    laps: Tuple[Lap, ...]
    trackpoints: Tuple[Trackpoint, ...]
    average_heart_rate_bpm: Optional[int] = None
    maximum_heart_rate_bpm: Optional[float] = None
    average_cadence: Optional[int] = None
    average_speed: float = 0.0
    average_pace_sec_per_km: Optional[int] = None
    best_pace_sec_per_km: Optional[int] = None
    elevation_gain_meters: Optional[float] = None
    elevation_loss_meters: Optional[float] = None
    device_name: Optional[str] = None

    @property
    def finished_at(self):
        if self.start_time is None:
            return None
        return self.start_time + timedelta(seconds=self.total_time_seconds)

    def gen_records(self):
        """One dict per trackpoint, with a 1-based ``lap`` counter."""
        for lap_number, lap in enumerate(self.laps, 1):
            for trackpoint in lap.trackpoints:
                record = trackpoint._asdict()
                record['lap'] = lap_number
                yield record

    def to_frame(self):
        """Trackpoints as an `ActivityData` frame indexed by elapsed time."""
        return ActivityData.from_records(self.gen_records(),
                                         start=self.start_time)
