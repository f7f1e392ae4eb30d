#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Structured workouts, as handed to the FIT encoder.

A workout's segments form a tree::

    Segment = Step | Repeat(count, children: Segment...)

Plain dicts (the JSON an application stores) are turned into this shape by
`Workout.from_dict`. That is the only place input is checked; the encoder
trusts the tree it gets.

"""
from math import isfinite
from typing import NamedTuple, Optional, Tuple, Union

from loguru import logger


# Durations that carry a value; anything else is open.
MEASURED_DURATIONS = ('time', 'distance')


class Duration(NamedTuple):
    kind: str = 'open'        # time (seconds), distance (metres) or open
    value: float = 0


OPEN_DURATION = Duration()


class Target(NamedTuple):
    kind: str = 'open'        # pace (sec/km), heart_rate_zone or open
    low: Optional[float] = None
    high: Optional[float] = None
    zone: Optional[int] = None


OPEN_TARGET = Target()


class Step(NamedTuple):
    type: str = 'steady'
    name: str = ''
    duration: Duration = OPEN_DURATION
    target: Target = OPEN_TARGET
    notes: str = ''


class Repeat(NamedTuple):
    count: int
    children: Tuple[Union[Step, 'Repeat'], ...]
    name: str = ''
    notes: str = ''

    type = 'repeat'


class Workout(NamedTuple):
    title: str
    workout_type: str = ''
    segments: Optional[Tuple[Union[Step, Repeat], ...]] = None
    target_duration_minutes: Optional[float] = None
    target_distance_km: Optional[float] = None
    created_at: Optional[object] = None     # datetime, for time_created

    @classmethod
    def from_dict(cls, data):
        """Build a Workout from the plain shape stored by an application::

            {'title': ..., 'workout_type': ...,
             'workout_structure': {'segments': [...]} or None,
             'target_duration_minutes': ..., 'target_distance_km': ...}
        """
        structure = data.get('workout_structure')
        if structure is not None and not isinstance(structure, dict):
            logger.warning('ignoring workout_structure of type {}',
                           type(structure).__name__)
            structure = None
        raw_segments = as_segment_list((structure or {}).get('segments') or
                                       data.get('segments'))

        segments = None
        if raw_segments:
            segments = segments_from_list(raw_segments, _path=())

        return cls(title=str(data.get('title') or ''),
                   workout_type=str(data.get('workout_type') or ''),
                   segments=segments,
                   target_duration_minutes=positive_number(
                       data.get('target_duration_minutes')),
                   target_distance_km=positive_number(
                       data.get('target_distance_km')),
                   created_at=data.get('created_at'))


def positive_number(value):
    """`value` as a finite float > 0, or None."""
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not isfinite(number) or number <= 0:
        return None
    return number


def as_segment_list(value):
    """`value` if it is a list of segments, else an empty tuple."""
    if value is None:
        return ()
    if not isinstance(value, (list, tuple)):
        logger.warning('ignoring segments of type {}', type(value).__name__)
        return ()
    return value


def segments_from_list(raw_segments, _path=()):
    segments = []
    for raw in raw_segments:
        if not isinstance(raw, dict):
            logger.warning('ignoring segment that is not a mapping: {!r}', raw)
            continue
        if any(raw is ancestor for ancestor in _path):
            logger.warning('dropping segment {!r}: it contains itself',
                           raw.get('name', raw.get('type')))
            continue
        segments.append(segment_from_dict(raw, _path=_path))
    return tuple(segments)


def segment_from_dict(raw, _path=()):
    """Turn one stored segment into a `Step` or a `Repeat`.

    Never raises on bad data. A repeat needs a positive count and at least
    one (valid) child; otherwise it is treated as a plain step.
    """
    seg_type = str(raw.get('type') or 'steady').lower()
    name = str(raw.get('name') or '')
    notes = str(raw.get('notes') or '')

    if seg_type == 'repeat':
        count = positive_number(raw.get('repeat_count'))
        children = segments_from_list(as_segment_list(raw.get('segments')),
                                      _path=_path + (raw,))
        if count is not None and int(count) >= 1 and children:
            return Repeat(count=int(count), children=children,
                          name=name, notes=notes)
        logger.warning('repeat segment {!r} has no count or no children; '
                       'writing it as a single step', name)

    return Step(type=seg_type, name=name,
                duration=duration_from_dict(raw),
                target=target_from_dict(raw),
                notes=notes)


def duration_from_dict(raw):
    kind = str(raw.get('duration_type') or 'open').lower()
    value = positive_number(raw.get('duration_value'))
    if kind not in MEASURED_DURATIONS or value is None:
        return OPEN_DURATION
    return Duration(kind, value)


def target_from_dict(raw):
    kind = str(raw.get('target_type') or 'open').lower()
    low = positive_number(raw.get('target_pace_low'))
    high = positive_number(raw.get('target_pace_high'))

    if kind == 'pace' or low is not None or high is not None:
        if low is None and high is None:
            return OPEN_TARGET
        if low is not None and high is not None and low > high:
            # Bounds are sec/km: `low` is the faster pace.
            logger.warning('pace bounds reversed ({} > {}); swapping them',
                           low, high)
            low, high = high, low
        return Target('pace', low=low, high=high)

    if kind == 'heart_rate_zone':
        zone = positive_number(raw.get('target_zone'))
        if zone is not None:
            return Target('heart_rate_zone', zone=int(zone))

    return OPEN_TARGET
