#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from datetime import datetime

import pytest
import pytz

from activitycodec import canonical
from activitycodec._types import Activity, Lap, Sport, Trackpoint


START = datetime(2024, 5, 4, 7, 30, tzinfo=pytz.utc)

TRACKPOINTS = (
    Trackpoint(time=START, latitude=51.5, longitude=-0.12,
               altitude_meters=12.0, heart_rate_bpm=140, cadence=84),
    Trackpoint(time=START, heart_rate_bpm=141),    # indoors, no position
)

LAP = Lap(start_time=START, total_time_seconds=300.4, distance_meters=1000,
          calories=0, average_heart_rate_bpm=150, maximum_heart_rate_bpm=165,
          cadence=84, trackpoints=TRACKPOINTS)

ACTIVITY = Activity(
    sport=Sport.RUN, id='2024-05-04T07:30:00.000Z', start_time=START,
    total_time_seconds=300.4, distance_meters=1000, calories=0,
    laps=(LAP,), trackpoints=TRACKPOINTS,
    average_heart_rate_bpm=150, maximum_heart_rate_bpm=165,
    average_cadence=84, average_speed=1000 / 300.4,
    average_pace_sec_per_km=300, best_pace_sec_per_km=250,
    elevation_gain_meters=None, elevation_loss_meters=None)

STRAVA_ACTIVITY = {
    'id': 987654321,
    'name': 'Morning Run',
    'type': 'TrailRun',
    'description': 'hills',
    'start_date': '2024-05-04T07:30:00Z',
    'elapsed_time': 3700,
    'moving_time': 3600,
    'distance': 12000.0,
    'max_speed': 4.9,
    'average_heartrate': 151.5,
    'max_heartrate': 178.2,
    'total_elevation_gain': 210.4,
    'average_cadence': 85.5,
    'calories': 0,
}

STRAVA_STREAMS = {
    'latlng': {'data': [[51.5, -0.12], [51.6, -0.13]]},
    'time': {'data': [0, 10]},
    'altitude': {'data': [10.2]},
    'heartrate': {'data': [120, 125]},
}

STRAVA_LAPS = [
    {'start_date': '2024-05-04T07:30:00Z', 'elapsed_time': 310,
     'moving_time': 300, 'distance': 1000.0, 'average_heartrate': 150.1,
     'max_heartrate': 160, 'average_cadence': 85, 'total_elevation_gain': 5},
    {'start_date': '2024-05-04T07:35:10Z', 'elapsed_time': 12,
     'moving_time': 10, 'distance': 0},
]


def test_from_tcx():
    record = canonical.from_tcx(ACTIVITY)

    assert record.source == 'import'
    assert record.external_id == 'tcx_2024-05-04T07:30:00.000Z'
    assert record.activity_type is Sport.RUN
    assert record.title == 'Run - 1.0 km'
    assert record.started_at == START
    assert record.finished_at == ACTIVITY.finished_at
    assert record.duration_seconds == record.moving_time_seconds == 300
    assert record.avg_pace_sec_per_km == 300
    assert record.avg_heart_rate == 150
    assert record.calories is None      # 0 means not recorded


def test_trackpoints_to_gpx_data():
    gpx = canonical.trackpoints_to_gpx_data(TRACKPOINTS)
    assert gpx == {'track': [{'lat': 51.5, 'lon': -0.12, 'ele': 12.0,
                              'time': START.isoformat(), 'hr': 140,
                              'cad': 84}]}

    assert canonical.trackpoints_to_gpx_data(TRACKPOINTS[1:]) is None


def test_laps_to_splits_data():
    split, = canonical.laps_to_splits_data((LAP,))['splits']
    assert split['lapNumber'] == 1
    assert split['startTime'] == START.isoformat()
    assert split['paceSecPerKm'] == 300
    assert split['avgHeartRate'] == 150
    assert split['calories'] == 0

    empty = LAP._replace(distance_meters=0)
    split, = canonical.laps_to_splits_data((empty,))['splits']
    assert split['paceSecPerKm'] is None

    assert canonical.laps_to_splits_data(()) is None


@pytest.mark.parametrize('sport, meters, title', [
    (Sport.RUN, 10000, 'Run - 10.0 km'),
    ('cycling', 42195, 'Ride - 42.2 km'),
    (Sport.WALK, 999, 'Walk'),
    ('kayaking', 5000, 'Workout - 5.0 km'),
])
def test_generate_title(sport, meters, title):
    assert canonical.generate_title(sport, meters) == title


def test_from_strava():
    record = canonical.from_strava(STRAVA_ACTIVITY, streams=STRAVA_STREAMS,
                                   laps=STRAVA_LAPS)

    assert record.source == 'strava'
    assert record.external_id == 'strava_987654321'
    assert record.activity_type is Sport.RUN
    assert record.title == 'Morning Run'
    assert record.description == 'hills'
    assert record.started_at == START
    assert record.finished_at == datetime(2024, 5, 4, 8, 31, 40,
                                          tzinfo=pytz.utc)
    assert record.duration_seconds == 3700
    assert record.moving_time_seconds == 3600
    assert record.avg_pace_sec_per_km == 300
    assert record.best_pace_sec_per_km == 204
    assert record.avg_heart_rate == 152
    assert record.max_heart_rate == 178
    assert record.avg_cadence == 86
    assert record.elevation_gain_meters == 210.4
    assert record.calories is None
    assert len(record.gpx_data['track']) == 2
    assert len(record.splits_data['splits']) == 2


def test_from_strava_without_details():
    payload = dict(STRAVA_ACTIVITY, distance=0, max_speed=0)
    record = canonical.from_strava(payload)
    assert record.avg_pace_sec_per_km is None
    assert record.best_pace_sec_per_km is None
    assert record.gpx_data is None and record.splits_data is None


@pytest.mark.parametrize('strava_type, sport', [
    ('Run', Sport.RUN),
    ('VirtualRun', Sport.RUN),
    ('Hike', Sport.WALK),
    ('GravelRide', Sport.CYCLING),
    ('Swim', Sport.SWIMMING),
    ('Yoga', Sport.CROSS_TRAINING),
    ('Kitesurf', Sport.OTHER),
    (None, Sport.OTHER),
])
def test_map_strava_activity_type(strava_type, sport):
    assert canonical.map_strava_activity_type(strava_type) is sport


def test_strava_streams_to_gpx_data():
    track = canonical.strava_streams_to_gpx_data(
        STRAVA_STREAMS, '2024-05-04T07:30:00Z')['track']

    assert track[0] == {'lat': 51.5, 'lon': -0.12, 'ele': 10.2, 'hr': 120,
                        'time': START.isoformat()}
    assert track[1] == {'lat': 51.6, 'lon': -0.13, 'hr': 125,
                        'time': '2024-05-04T07:30:10+00:00'}

    assert canonical.strava_streams_to_gpx_data({}, START) is None
    assert canonical.strava_streams_to_gpx_data(
        {'latlng': {'data': []}}, START) is None


def test_strava_laps_to_splits_data():
    first, second = canonical.strava_laps_to_splits_data(STRAVA_LAPS)['splits']
    assert first == {
        'lapNumber': 1,
        'startTime': '2024-05-04T07:30:00Z',
        'durationSeconds': 310,
        'movingTimeSeconds': 300,
        'distanceMeters': 1000.0,
        'paceSecPerKm': 300,
        'avgHeartRate': 150.1,
        'maxHeartRate': 160,
        'cadence': 85,
        'elevationGain': 5,
    }
    assert second['lapNumber'] == 2
    assert second['paceSecPerKm'] is None
    assert second['avgHeartRate'] is None

    assert canonical.strava_laps_to_splits_data([]) is None
