#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
General tools that complement the API.

"""
from collections import namedtuple
from math import ceil

import numpy as np


EARTH_RADIUS = 6371e3   # metres

# Laps shorter than this are partial kilometres; ignored for records.
FULL_SPLIT_METERS = 900

DISTANCES = (   # (key, metres)
    ('500m', 500),
    ('1km', 1000),
    ('2km', 2000),
    ('5km', 5000),
    ('10km', 10000),
    ('15km', 15000),
    ('10mile', 16093.4),
    ('20km', 20000),
    ('half', 21097.5),
    ('marathon', 42195),
)

DistanceRecord = namedtuple(
    'DistanceRecord', 'distance_key time_seconds external_id started_at')


def haversine(lon, lat, *, fill=0):
    """Great-circle distances between two points on a sphere.

    Parameters
    ----------
    lon, lat: numpy arrays or lists
        Positional coordinates in *radians*.
    fill: scalar
        An appropriate missing value for the start.

    Returns
    -------
    numpy array
        Distance(s) between adjacent points in metres.

    Examples
    --------
        >>> dist = haversine(np.radians([-77.037852, -77.043934]),
        ...                  np.radians([38.898556, 38.897147]))
        >>> '{:.1f} metres'.format(dist[-1])  # ignoring the leading zero
        '549.2 metres'

    References
    ----------
    https://rosettacode.org/wiki/Haversine_formula#Python
    http://www.movable-type.co.uk/scripts/latlong.html
    """
    lon, lat = np.asarray(lon), np.asarray(lat)   # check
    dlon, dlat = np.diff(lon), np.diff(lat)

    a = (np.sin(dlat / 2)**2
         + np.cos(lat[:-1])
         * np.cos(lat[1:])
         * np.sin(dlon / 2)**2)

    c = 2 * np.arcsin(np.sqrt(a)) * EARTH_RADIUS

    return np.concatenate(([fill], c))


def elevation_change(altitudes):
    """Total ascent and descent (both positive) over a series of altitudes.

    Missing samples (None or NaN) are skipped: the delta is taken between
    the known samples either side of the gap.

        >>> elevation_change([100, None, 105, 95])
        (5.0, 10.0)
    """
    alt = np.array([np.nan if a is None else a for a in altitudes],
                   dtype='float64')
    alt = alt[~np.isnan(alt)]
    if alt.size < 2:
        return 0.0, 0.0

    deltas = np.diff(alt)
    gain = deltas[deltas > 0].sum()
    loss = -deltas[deltas < 0].sum()
    return float(gain), float(loss)


def speed_from_pace(pace_sec_per_km):
    """ sec/km --> m/s (None for non-positive paces) """
    if pace_sec_per_km is None or not pace_sec_per_km > 0:
        return None
    return 1000 / pace_sec_per_km


def pace_from_speed(speed):
    """ m/s --> sec/km (None for non-positive speeds) """
    if speed is None or not speed > 0:
        return None
    return 1000 / speed


def best_time_for_distance(records, target_meters, *, key=None):
    """Fastest time over `target_meters` found in the splits of `records`.

    Each record needs ``distance_meters``, ``splits_data`` (``{'splits':
    [{'distanceMeters': ..., 'durationSeconds': ...}, ...]}`` or None),
    ``external_id`` and ``started_at`` attributes; `ActivityRecord` from
    `activitycodec.canonical` fits.

    Only full (>= 900 m) splits count. 1 km is the best single split; 500 m
    is estimated from it; longer distances take the best run of consecutive
    splits, scaled when the target is not a whole number of kilometres.

    Returns
    -------
    DistanceRecord or None
    """
    key = key or _distance_key(target_meters)
    best = None

    for record in records:
        if (record.distance_meters or 0) < target_meters * 0.95:
            continue

        splits = (record.splits_data or {}).get('splits') or ()
        full = [s for s in splits
                if (s.get('distanceMeters') or 0) >= FULL_SPLIT_METERS]
        if not full:
            continue

        durations = np.array([s['durationSeconds'] for s in full],
                             dtype='float64')
        distances = np.array([s['distanceMeters'] for s in full],
                             dtype='float64')

        if target_meters == 500:
            time_seconds = durations.min() / 2 * 0.98
        elif target_meters == 1000:
            time_seconds = durations.min()
        else:
            n_splits = ceil(target_meters / 1000)
            if len(full) < n_splits:
                continue
            window = np.ones(n_splits)
            times = np.convolve(durations, window, mode='valid')
            if target_meters % 1000:
                dists = np.convolve(distances, window, mode='valid')
                times = times * (target_meters / dists)
            time_seconds = times.min()

        if best is None or time_seconds < best.time_seconds:
            best = DistanceRecord(key, float(time_seconds),
                                  record.external_id, record.started_at)

    return best


def personal_records(records):
    """`best_time_for_distance` for each of the standard `DISTANCES`."""
    records = list(records)
    found = {}
    for key, meters in DISTANCES:
        best = best_time_for_distance(records, meters, key=key)
        if best is not None:
            found[key] = best
    return found


def _distance_key(meters):
    for key, known in DISTANCES:
        if known == meters:
            return key
    return str(meters)
