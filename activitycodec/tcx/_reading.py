#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from codecs import BOM_UTF8
from io import BytesIO, StringIO
from os import path
from xml.etree.ElementTree import ParseError

from loguru import logger

from activitycodec._types import Activity, Lap, Sport, Trackpoint
from activitycodec._util import exceptions
from activitycodec._util.misc import round_half_up, to_utc
from activitycodec._util.xml_reading import (
    find_child, find_text, first_text, gen_nodes, sans_ns)
from activitycodec import tools


# Candidate paths, tried in order. Namespace prefixes (``ns3:LX`` etc.) are
# resolved by the parser or stripped by `sans_ns`, so ``LX`` covers both.
LAP_CADENCE = (
    ('Cadence',),
    ('Extensions', 'LX', 'AvgRunCadence'),
)
TRACKPOINT_SPEED = (
    ('Extensions', 'TPX', 'Speed'),
)
TRACKPOINT_CADENCE = (
    ('Cadence',),
    ('Extensions', 'TPX', 'RunCadence'),
)

# Byte order mark and whitespace allowed ahead of the first tag.
XML_LEADING = '\ufeff \t\r\n'


def to_float(text):
    if text is None:
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    return value if value == value else None    # NaN


def _source(source):
    """Something `iterparse` can read: file-likes and paths pass through,
    raw XML text or bytes are wrapped. A leading byte order mark is dropped.
    """
    if isinstance(source, (bytes, bytearray)):
        data = bytes(source).lstrip()
        if data.startswith(BOM_UTF8):
            data = data[len(BOM_UTF8):].lstrip()
        return BytesIO(data)
    if isinstance(source, str):
        text = source.lstrip(XML_LEADING)
        if not text or text.startswith('<'):
            return StringIO(text)
        if not path.isfile(source):
            raise exceptions.MalformedXml(
                'neither XML text nor a readable file')
    return source


def parse_trackpoint(element):
    position = find_child(element, 'Position')
    latitude = longitude = None
    if position is not None:
        latitude = to_float(find_text(position, ('LatitudeDegrees',)))
        longitude = to_float(find_text(position, ('LongitudeDegrees',)))

    heart_rate = to_float(find_text(element, ('HeartRateBpm', 'Value')))

    return Trackpoint(
        time=to_utc(find_text(element, ('Time',))),
        latitude=latitude,
        longitude=longitude,
        altitude_meters=to_float(find_text(element, ('AltitudeMeters',))),
        distance_meters=to_float(find_text(element, ('DistanceMeters',))),
        heart_rate_bpm=heart_rate or None,      # 0 means no reading
        cadence=to_float(first_text(element, TRACKPOINT_CADENCE)),
        speed=to_float(first_text(element, TRACKPOINT_SPEED)),
    )


def gen_trackpoints(lap_element):
    for track in lap_element:
        if sans_ns(track.tag) != 'Track':
            continue
        for trkpt in track:
            if sans_ns(trkpt.tag) == 'Trackpoint':
                yield parse_trackpoint(trkpt)


def parse_lap(element):
    return Lap(
        start_time=to_utc(element.get('StartTime')),
        total_time_seconds=to_float(
            find_text(element, ('TotalTimeSeconds',))) or 0.0,
        distance_meters=to_float(
            find_text(element, ('DistanceMeters',))) or 0.0,
        calories=to_float(find_text(element, ('Calories',))) or 0.0,
        maximum_speed=to_float(find_text(element, ('MaximumSpeed',))),
        average_heart_rate_bpm=to_float(
            find_text(element, ('AverageHeartRateBpm', 'Value'))),
        maximum_heart_rate_bpm=to_float(
            find_text(element, ('MaximumHeartRateBpm', 'Value'))),
        cadence=to_float(first_text(element, LAP_CADENCE)),
        intensity=find_text(element, ('Intensity',)),
        trigger_method=find_text(element, ('TriggerMethod',)),
        trackpoints=tuple(gen_trackpoints(element)),
    )


def mean_of_reported(values):
    """Rounded mean of the values that are not None (None if there are none)."""
    reported = [v for v in values if v is not None]
    if not reported:
        return None
    return round_half_up(sum(reported) / len(reported))


def parse_activity(element):
    """Build an `Activity` from an ``<Activity>`` element.

    Returns None for an activity without laps: there is nothing to report.
    """
    activity_id = find_text(element, ('Id',)) or ''
    laps = tuple(parse_lap(child) for child in element
                 if sans_ns(child.tag) == 'Lap')
    if not laps:
        logger.warning('skipping activity {!r}: no laps', activity_id)
        return None

    trackpoints = tuple(tp for lap in laps for tp in lap.trackpoints)

    total_time = sum(lap.total_time_seconds for lap in laps)
    distance = sum(lap.distance_meters for lap in laps)
    calories = sum(lap.calories for lap in laps)

    max_hrs = [lap.maximum_heart_rate_bpm for lap in laps
               if lap.maximum_heart_rate_bpm is not None]

    average_speed = distance / total_time if total_time > 0 else 0.0
    average_pace = tools.pace_from_speed(average_speed)

    speeds = [tp.speed for tp in trackpoints
              if tp.speed is not None and tp.speed > 0]
    best_pace = tools.pace_from_speed(max(speeds)) if speeds else None

    gain, loss = tools.elevation_change(tp.altitude_meters
                                        for tp in trackpoints)

    start_time = to_utc(activity_id)
    if start_time is None:
        start_time = laps[0].start_time

    return Activity(
        sport=Sport.from_label(element.get('Sport') or 'Other'),
        id=activity_id,
        start_time=start_time,
        total_time_seconds=total_time,
        distance_meters=distance,
        calories=calories,
        laps=laps,
        trackpoints=trackpoints,
        average_heart_rate_bpm=mean_of_reported(
            lap.average_heart_rate_bpm for lap in laps),
        maximum_heart_rate_bpm=max(max_hrs) if max_hrs else None,
        average_cadence=mean_of_reported(lap.cadence for lap in laps),
        average_speed=average_speed,
        average_pace_sec_per_km=(round_half_up(average_pace)
                                 if average_pace is not None else None),
        best_pace_sec_per_km=(round_half_up(best_pace)
                              if best_pace is not None else None),
        elevation_gain_meters=gain if gain > 0 else None,
        elevation_loss_meters=loss if loss > 0 else None,
        device_name=find_text(element, ('Creator', 'Name')),
    )


def gen_activities(source):
    """Generator function for iterating over the activities in a TCX file.

    Raises
    ------
    MalformedXml, MissingRootElement, MissingActivitiesElement
    """
    nodes = gen_nodes(_source(source), ('Activities', 'Activity'),
                      with_root=True)
    try:
        root = next(nodes)
        if sans_ns(root.tag) != 'TrainingCenterDatabase':
            raise exceptions.MissingRootElement()

        seen_container = False
        for node in nodes:
            if sans_ns(node.tag) == 'Activities':
                seen_container = True
                continue
            activity = parse_activity(node)
            if activity is not None:
                yield activity

    except ParseError as e:
        raise exceptions.MalformedXml(str(e)) from e

    if not seen_container:
        raise exceptions.MissingActivitiesElement()


def read(source):
    """Decode a TCX document.

    Parameters
    ----------
    source : str, bytes or file-like
        XML text or bytes, an open file, or a path to a file.

    Returns
    -------
    list of Activity
        Never empty.

    Raises
    ------
    MalformedXml
        The document is not well formed XML.
    MissingRootElement
        The root element is not ``TrainingCenterDatabase``.
    MissingActivitiesElement
        There is no ``Activities`` container.
    NoActivitiesFound
        The container holds no (reportable) activity.
    """
    activities = list(gen_activities(source))
    if not activities:
        raise exceptions.NoActivitiesFound()

    logger.debug('decoded {} activit{} ({} laps)', len(activities),
                 'y' if len(activities) == 1 else 'ies',
                 sum(len(a.laps) for a in activities))
    return activities


def gen_records(source):
    """Generator function for iterating over individual trackpoint records.

    "Records" are dictionary objects representing a single "sample" of data;
    i.e. a row in a tabular representation. Note this can be passed to
    the `from_records` constructor method of `pandas.DataFrame`s.
    """
    for activity in read(source):
        yield from activity.gen_records()


def read_and_format(source):
    """The first activity's trackpoints as an `ActivityData` frame."""
    return read(source)[0].to_frame()
