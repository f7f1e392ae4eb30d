#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Fold activities from different sources into one record shape.

An `ActivityRecord` is what an application stores: flat, JSON friendly
(datetimes aside), with the trackpoints and laps boiled down to plain
``gpx_data`` and ``splits_data`` dicts::

    gpx_data    = {'track': [{'lat', 'lon', 'ele', 'time', 'hr', 'cad'}, ...]}
    splits_data = {'splits': [{'lapNumber', 'startTime', 'durationSeconds',
                               'distanceMeters', 'paceSecPerKm', ...}, ...]}

Sources are a decoded TCX `Activity` (`from_tcx`) and the JSON payloads of
the Strava API (`from_strava`); fetching those payloads is left to the
caller.

"""
from datetime import timedelta
from typing import NamedTuple, Optional

from activitycodec._types import Sport
from activitycodec._util.misc import round_half_up, to_utc
from activitycodec import tools


TITLE_LABELS = {
    Sport.RUN: 'Run',
    Sport.WALK: 'Walk',
    Sport.CYCLING: 'Ride',
    Sport.SWIMMING: 'Swim',
    Sport.CROSS_TRAINING: 'Cross-training',
    Sport.OTHER: 'Workout',
}

STRAVA_ACTIVITY_TYPES = {
    'Run': Sport.RUN,
    'TrailRun': Sport.RUN,
    'VirtualRun': Sport.RUN,
    'Walk': Sport.WALK,
    'Hike': Sport.WALK,
    'Ride': Sport.CYCLING,
    'MountainBikeRide': Sport.CYCLING,
    'GravelRide': Sport.CYCLING,
    'EBikeRide': Sport.CYCLING,
    'VirtualRide': Sport.CYCLING,
    'Swim': Sport.SWIMMING,
    'Workout': Sport.CROSS_TRAINING,
    'WeightTraining': Sport.CROSS_TRAINING,
    'Crossfit': Sport.CROSS_TRAINING,
    'Yoga': Sport.CROSS_TRAINING,
}


class ActivityRecord(NamedTuple):
    source: str                 # 'import' (TCX upload) or 'strava'
    external_id: str
    activity_type: Sport
    title: str
    started_at: Optional[object]
    finished_at: Optional[object]
    duration_seconds: Optional[int]
    moving_time_seconds: Optional[int]
    distance_meters: float
    description: Optional[str] = None
    avg_pace_sec_per_km: Optional[int] = None
    best_pace_sec_per_km: Optional[int] = None
    avg_heart_rate: Optional[int] = None
    max_heart_rate: Optional[int] = None
    elevation_gain_meters: Optional[float] = None
    elevation_loss_meters: Optional[float] = None
    avg_cadence: Optional[int] = None
    calories: Optional[float] = None
    gpx_data: Optional[dict] = None
    splits_data: Optional[dict] = None


def _isoformat(when):
    return when.isoformat() if when is not None else None


def _rounded(value):
    """Half-up rounded integer for truthy numbers, else None."""
    return round_half_up(value) if value else None


def _pace(seconds, meters):
    """ (seconds, metres) --> whole sec/km, None for empty distances """
    if not meters or meters <= 0 or seconds is None:
        return None
    return round_half_up(seconds / meters * 1000)


# TCX
# ---
def generate_title(sport, distance_meters):
    """``"Run - 10.0 km"``; just the label under a kilometre."""
    try:
        label = TITLE_LABELS[Sport(sport)]
    except ValueError:
        label = TITLE_LABELS[Sport.OTHER]
    km = (distance_meters or 0) / 1000
    if km >= 1:
        return '{} - {:.1f} km'.format(label, km)
    return label


def trackpoints_to_gpx_data(trackpoints):
    points = [{'lat': tp.latitude,
               'lon': tp.longitude,
               'ele': tp.altitude_meters,
               'time': _isoformat(tp.time),
               'hr': tp.heart_rate_bpm,
               'cad': tp.cadence}
              for tp in trackpoints
              if tp.latitude is not None and tp.longitude is not None]
    return {'track': points} if points else None


def laps_to_splits_data(laps):
    if not laps:
        return None
    splits = [{'lapNumber': number,
               'startTime': _isoformat(lap.start_time),
               'durationSeconds': lap.total_time_seconds,
               'distanceMeters': lap.distance_meters,
               'paceSecPerKm': _pace(lap.total_time_seconds,
                                     lap.distance_meters),
               'avgHeartRate': lap.average_heart_rate_bpm,
               'maxHeartRate': lap.maximum_heart_rate_bpm,
               'cadence': lap.cadence,
               'calories': lap.calories}
              for number, lap in enumerate(laps, 1)]
    return {'splits': splits}


def from_tcx(activity):
    """`ActivityRecord` for a decoded TCX `Activity`.

    TCX has no notion of moving time, so it is the elapsed time.
    """
    duration = round_half_up(activity.total_time_seconds)
    return ActivityRecord(
        source='import',
        external_id='tcx_' + activity.id,
        activity_type=activity.sport,
        title=generate_title(activity.sport, activity.distance_meters),
        started_at=activity.start_time,
        finished_at=activity.finished_at,
        duration_seconds=duration,
        moving_time_seconds=duration,
        distance_meters=activity.distance_meters,
        avg_pace_sec_per_km=activity.average_pace_sec_per_km,
        best_pace_sec_per_km=activity.best_pace_sec_per_km,
        avg_heart_rate=activity.average_heart_rate_bpm,
        max_heart_rate=activity.maximum_heart_rate_bpm,
        elevation_gain_meters=activity.elevation_gain_meters,
        elevation_loss_meters=activity.elevation_loss_meters,
        avg_cadence=activity.average_cadence,
        calories=activity.calories if activity.calories > 0 else None,
        gpx_data=trackpoints_to_gpx_data(activity.trackpoints),
        splits_data=laps_to_splits_data(activity.laps),
    )


# Strava
# ------
def map_strava_activity_type(strava_type):
    return STRAVA_ACTIVITY_TYPES.get(strava_type, Sport.OTHER)


def _stream(streams, name):
    stream = streams.get(name)
    if isinstance(stream, dict):
        stream = stream.get('data')
    return stream or None


def strava_streams_to_gpx_data(streams, start_time):
    """Zip Strava activity streams (``key_by_type``) into a track.

    Parameters
    ----------
    streams : dict
        ``{'latlng': {'data': [[lat, lon], ...]}, 'time': {...}, ...}``.
    start_time : str or datetime
        Time offsets in the ``time`` stream are relative to this.

    Returns
    -------
    dict or None
        None without a ``latlng`` stream. Points only carry the keys
        for which a stream sample exists.
    """
    latlng = _stream(streams or {}, 'latlng')
    if not latlng:
        return None

    start = to_utc(start_time)
    extra = (('ele', _stream(streams, 'altitude')),
             ('hr', _stream(streams, 'heartrate')),
             ('cad', _stream(streams, 'cadence')))
    offsets = _stream(streams, 'time')

    track = []
    for i, (lat, lon) in enumerate(latlng):
        point = {'lat': lat, 'lon': lon}
        for key, samples in extra:
            if samples is not None and i < len(samples):
                point[key] = samples[i]
        if offsets is not None and i < len(offsets) and start is not None:
            point['time'] = _isoformat(start + timedelta(seconds=offsets[i]))
        track.append(point)

    return {'track': track}


def strava_laps_to_splits_data(laps):
    if not laps:
        return None
    splits = [{'lapNumber': number,
               'startTime': lap.get('start_date'),
               'durationSeconds': lap.get('elapsed_time'),
               'movingTimeSeconds': lap.get('moving_time'),
               'distanceMeters': lap.get('distance'),
               'paceSecPerKm': _pace(lap.get('moving_time'),
                                     lap.get('distance')),
               'avgHeartRate': lap.get('average_heartrate'),
               'maxHeartRate': lap.get('max_heartrate'),
               'cadence': lap.get('average_cadence'),
               'elevationGain': lap.get('total_elevation_gain')}
              for number, lap in enumerate(laps, 1)]
    return {'splits': splits}


def from_strava(activity, streams=None, laps=None):
    """`ActivityRecord` for a Strava "detailed activity" payload.

    `streams` and `laps` are the payloads of the activity's streams and
    laps endpoints, when the caller fetched them.
    """
    distance = activity.get('distance') or 0
    moving_time = activity.get('moving_time') or 0
    elapsed_time = activity.get('elapsed_time') or 0

    avg_pace = _pace(moving_time, distance) if moving_time > 0 else None
    best_pace = tools.pace_from_speed(activity.get('max_speed'))

    started_at = to_utc(activity.get('start_date'))
    finished_at = (started_at + timedelta(seconds=elapsed_time)
                   if started_at is not None else None)

    return ActivityRecord(
        source='strava',
        external_id='strava_{}'.format(activity['id']),
        activity_type=map_strava_activity_type(activity.get('type')),
        title=activity.get('name') or '',
        description=activity.get('description'),
        started_at=started_at,
        finished_at=finished_at,
        duration_seconds=elapsed_time,
        moving_time_seconds=moving_time,
        distance_meters=distance,
        avg_pace_sec_per_km=avg_pace,
        best_pace_sec_per_km=(round_half_up(best_pace)
                              if best_pace is not None else None),
        avg_heart_rate=_rounded(activity.get('average_heartrate')),
        max_heart_rate=_rounded(activity.get('max_heartrate')),
        elevation_gain_meters=activity.get('total_elevation_gain'),
        avg_cadence=_rounded(activity.get('average_cadence')),
        calories=_rounded(activity.get('calories')),
        gpx_data=(strava_streams_to_gpx_data(streams, activity.get(
            'start_date')) if streams else None),
        splits_data=strava_laps_to_splits_data(laps),
    )
