#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Write structured workouts as FIT workout files.

A file holds, in order: one file_id message, one workout message and one
workout_step message per step. Steps are produced by walking the segment
tree depth first:

    + a `Step` becomes one workout_step;
    + a `Repeat` writes its children ``count`` times over, followed by a
      "repeat until steps complete" step pointing back at the first of them.

Nothing about the workout data itself can make encoding fail. Values that
cannot be represented are written as FIT's "open" (no duration / no target).

"""
from math import isfinite

from loguru import logger

from activitycodec.fit import _profile as profile
from activitycodec.fit._protocol import (
    FitMessageWriter, FitWriter, MessageDefinition)
from activitycodec.tools import speed_from_pace
from activitycodec._types.workout import Repeat, Workout
from activitycodec._util.misc import round_half_up, slugify, to_utc


WKT_NAME_SIZE = 64
STEP_NAME_SIZE = 32
STEP_NOTES_SIZE = 64

UINT16_MAX_VALID = 0xFFFE
UINT32_MAX_VALID = 0xFFFFFFFE

# message_index is a uint16, so this is a hard ceiling on unrolled steps.
MAX_STEPS = UINT16_MAX_VALID

FALLBACK_DURATION_MINUTES = 30
FALLBACK_SPLIT = (('warmup', 0.1), ('active', 0.8), ('cooldown', 0.1))

LOCAL_FILE_ID = 0
LOCAL_WORKOUT = 1
LOCAL_WORKOUT_STEP = 2

FILE_ID = MessageDefinition.from_profile('file_id', (
    ('type', None),
    ('manufacturer', None),
    ('product', None),
    ('serial_number', None),
    ('time_created', None),
))

WORKOUT = MessageDefinition.from_profile('workout', (
    ('sport', None),
    ('sub_sport', None),
    ('num_valid_steps', None),
    ('wkt_name', WKT_NAME_SIZE),
))

WORKOUT_STEP = MessageDefinition.from_profile('workout_step', (
    ('message_index', None),
    ('wkt_step_name', STEP_NAME_SIZE),
    ('duration_type', None),
    ('duration_value', None),
    ('target_type', None),
    ('target_value', None),
    ('custom_target_value_low', None),
    ('custom_target_value_high', None),
    ('intensity', None),
    ('notes', STEP_NOTES_SIZE),
))

# File id placeholders; devices only care that they are present.
PRODUCT = 1
SERIAL_NUMBER = 12345


def uint32_or_none(value):
    """`value` rounded to a valid uint32, or None if it cannot be one."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not isfinite(number) or number < 0:
        return None
    number = round_half_up(number)
    return number if number <= UINT32_MAX_VALID else None


def fit_timestamp(when):
    """Seconds since the FIT epoch (1989-12-31T00:00:00Z), or None (written
    as invalid) when there is no usable time."""
    when = to_utc(when)
    if when is None:
        return None
    seconds = int(when.timestamp()) - profile.FIT_EPOCH_OFFSET
    return seconds if 0 <= seconds <= UINT32_MAX_VALID else None


def encode_duration(duration):
    """(duration_type, duration_value) for a `Duration`.

    Time is written in milliseconds, distance in centimetres.
    """
    open_ = (profile.WKT_STEP_DURATION['open'], 0)
    if duration.kind == 'time':
        value = uint32_or_none(duration.value * 1000)
    elif duration.kind == 'distance':
        value = uint32_or_none(duration.value * 100)
    else:
        return open_

    if not value:
        return open_
    return profile.WKT_STEP_DURATION[duration.kind], value


def encode_target(target):
    """(target_type, target_value, custom_low, custom_high) for a `Target`.

    Pace bounds (sec/km) become a speed range in mm/s. Speeds ascend where
    paces descend, so the slower pace gives the low end of the range.
    """
    open_ = (profile.WKT_STEP_TARGET['open'], 0, 0, 0)

    if target.kind == 'pace':
        fast, slow = target.low, target.high
        if fast is not None and slow is not None and fast > slow:
            fast, slow = slow, fast
        speed_high = mm_per_second(fast)
        speed_low = mm_per_second(slow)
        if not (speed_low or speed_high):
            return open_
        return (profile.WKT_STEP_TARGET['speed'], 0,
                speed_low or 0, speed_high or 0)

    if target.kind == 'heart_rate_zone' and target.zone:
        low, high = profile.HR_ZONE_PERCENT.get(
            target.zone, profile.HR_ZONE_PERCENT_DEFAULT)
        return (profile.WKT_STEP_TARGET['heart_rate'], 0,
                low + profile.HR_PERCENT_OFFSET,
                high + profile.HR_PERCENT_OFFSET)

    return open_


def mm_per_second(pace_sec_per_km):
    if pace_sec_per_km is None:
        return None
    speed = speed_from_pace(pace_sec_per_km)
    if speed is None:
        return None
    return uint32_or_none(speed * 1000)


def intensity_for(segment_type):
    return profile.INTENSITY.get(segment_type, profile.INTENSITY['active'])


def step_values(index, step):
    duration_type, duration_value = encode_duration(step.duration)
    target_type, target_value, low, high = encode_target(step.target)
    return {
        'message_index': index,
        'wkt_step_name': step.name,
        'duration_type': duration_type,
        'duration_value': duration_value,
        'target_type': target_type,
        'target_value': target_value,
        'custom_target_value_low': low,
        'custom_target_value_high': high,
        'intensity': intensity_for(step.type),
        'notes': step.notes,
    }


def repeat_values(index, first_index, repeat):
    count = min(repeat.count, UINT32_MAX_VALID)
    return {
        'message_index': index,
        'wkt_step_name': repeat.name,
        'duration_type': profile.WKT_STEP_DURATION['repeat_until_steps_cmplt'],
        'duration_value': first_index,       # step to loop back to
        'target_type': profile.WKT_STEP_TARGET['open'],
        'target_value': count,               # repeat_steps
        'custom_target_value_low': 0,
        'custom_target_value_high': count,
        'intensity': profile.INTENSITY['interval'],
        'notes': repeat.notes,
    }


def fallback_values(workout):
    """Warmup / main / cooldown steps for workouts without structure."""
    minutes = workout.target_duration_minutes or FALLBACK_DURATION_MINUTES
    steps = []
    for index, (intensity, share) in enumerate(FALLBACK_SPLIT):
        duration_ms = uint32_or_none(minutes * share * 60 * 1000)
        duration_type = ('time' if duration_ms else 'open')
        steps.append({
            'message_index': index,
            'wkt_step_name': '',
            'duration_type': profile.WKT_STEP_DURATION[duration_type],
            'duration_value': duration_ms or 0,
            'target_type': profile.WKT_STEP_TARGET['open'],
            'target_value': 0,
            'custom_target_value_low': 0,
            'custom_target_value_high': 0,
            'intensity': profile.INTENSITY[intensity],
            'notes': '',
        })
    return steps


def _plan_segment(segment, steps):
    if len(steps) >= MAX_STEPS:
        return

    if isinstance(segment, Repeat):
        first_index = len(steps)
        for __ in range(segment.count):
            for child in segment.children:
                _plan_segment(child, steps)
            if len(steps) >= MAX_STEPS:
                logger.warning('workout exceeds {} steps; truncating',
                               MAX_STEPS)
                return
        steps.append(repeat_values(len(steps), first_index, segment))
    else:
        steps.append(step_values(len(steps), segment))


def plan_steps(workout):
    """The workout_step values that `encode_workout` will write, in order."""
    if not workout.segments:
        return fallback_values(workout)

    steps = []
    for segment in workout.segments:
        _plan_segment(segment, steps)
    return steps


def encode_workout(workout, *, time_created=None):
    """Encode a workout as a complete FIT file.

    Parameters
    ----------
    workout : Workout or dict
        Dicts are converted with `Workout.from_dict`.
    time_created : datetime, optional
        Written to file_id. Defaults to ``workout.created_at``; without
        either, time_created is written as invalid.

    Returns
    -------
    bytes
        The FIT file, CRCs included.
    """
    if isinstance(workout, dict):
        workout = Workout.from_dict(workout)

    if time_created is None:
        time_created = workout.created_at

    steps = plan_steps(workout)

    writer = FitWriter()
    writer.write_header()
    messages = FitMessageWriter(writer)

    messages.define(LOCAL_FILE_ID, FILE_ID)
    messages.write(LOCAL_FILE_ID, {
        'type': profile.FILE_TYPE_WORKOUT,
        'manufacturer': profile.MANUFACTURER_GARMIN,
        'product': PRODUCT,
        'serial_number': SERIAL_NUMBER,
        'time_created': fit_timestamp(time_created),
    })

    messages.define(LOCAL_WORKOUT, WORKOUT)
    messages.write(LOCAL_WORKOUT, {
        'sport': profile.SPORT_RUNNING,
        'sub_sport': profile.SUB_SPORT_GENERIC,
        'num_valid_steps': len(steps),
        'wkt_name': workout.title,
    })

    for values in steps:
        messages.define(LOCAL_WORKOUT_STEP, WORKOUT_STEP)   # first time only
        messages.write(LOCAL_WORKOUT_STEP, values)

    writer.finalize()
    data = writer.getvalue()

    logger.debug('encoded workout {!r}: {} steps, {} bytes',
                 workout.title, len(steps), len(data))
    return data


def fit_filename(title):
    """Suggested download name for a workout file."""
    return slugify(title) + '.fit'
