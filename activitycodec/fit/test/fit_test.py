#!/usr/bin/env python3
# -*- coding: utf-8 -*-
from datetime import datetime
from struct import unpack

import pytest
import pytz

from activitycodec import fit
from activitycodec.fit import _reading
from activitycodec.fit._protocol import FitMessageWriter, FitWriter
from activitycodec.fit._writing import WORKOUT, WORKOUT_STEP
from activitycodec._types import Workout
from activitycodec._util import exceptions


CREATED = datetime(2024, 1, 1, tzinfo=pytz.utc)
CREATED_FIT = 1704067200 - 631065600

INTERVALS = {
    'title': 'Intervals',
    'workout_type': 'interval',
    'workout_structure': {'segments': [
        {'type': 'warmup', 'duration_type': 'time', 'duration_value': 600},
        {'type': 'repeat', 'repeat_count': 4, 'segments': [
            {'type': 'interval', 'name': '400m',
             'duration_type': 'distance', 'duration_value': 400,
             'target_type': 'pace',
             'target_pace_low': 240, 'target_pace_high': 255},
            {'type': 'recovery', 'duration_type': 'time',
             'duration_value': 90, 'target_type': 'heart_rate_zone',
             'target_zone': 2},
        ]},
        {'type': 'cooldown', 'duration_type': 'time', 'duration_value': 600,
         'notes': 'easy does it'},
    ]},
}


def encode(workout):
    return fit.encode_workout(workout, time_created=CREATED)


def steps_of(data):
    return [fields for name, fields in fit.read_messages(data)
            if name == 'workout_step']


def one_step(segment):
    step, = steps_of(encode({'title': 't',
                             'workout_structure': {'segments': [segment]}}))
    return step


def raw_step_field(data, name):
    """Bytes of field `name` in the last workout_step record."""
    record = data[-2 - WORKOUT_STEP.data_size:-2]
    offset = 0
    for field_def in WORKOUT_STEP.field_defs:
        if field_def.name == name:
            return record[offset:offset + field_def.size]
        offset += field_def.size
    raise KeyError(name)


# Binary writer primitives
# ------------------------
def test_crc():
    assert fit.crc16(b'') == 0
    assert fit.crc16(b'123456789') == 0xBB3D    # CRC-16/ARC check value
    # running checksum
    assert fit.crc16(b'6789', crc=fit.crc16(b'12345')) == 0xBB3D


def test_fixed_string():
    assert fit.fixed_string('Tempo', 8) == b'Tempo\x00\x00\x00'
    assert fit.fixed_string(None, 4) == b'\x00' * 4

    long = fit.fixed_string('x' * 100, 64)
    assert len(long) == 64
    assert long[-1] == 0 and long[:63] == b'x' * 63

    # truncation never splits a character
    accented = fit.fixed_string('é' * 40, 64)
    assert len(accented) == 64
    assert accented.rstrip(b'\x00').decode('utf-8') == 'é' * 31

    with pytest.raises(ValueError):
        fit.fixed_string('x', 0)


def test_writer_integers():
    writer = FitWriter()
    writer.write_uint16_le(0x0102)
    writer.write_uint32_le(0x03040506)
    assert writer.position == 6
    assert writer.write_fixed_string('ab', 4) == b'ab\x00\x00'
    assert writer.position == 10


def test_writer_lifecycle():
    writer = FitWriter()
    with pytest.raises(exceptions.WriterStateError):
        writer.finalize()           # no header
    writer.write_header()
    with pytest.raises(exceptions.WriterStateError):
        writer.write_header()       # not at the start
    with pytest.raises(exceptions.WriterStateError):
        writer.getvalue()           # not finalized

    writer.finalize()
    assert writer.finalized
    with pytest.raises(exceptions.WriterStateError):
        writer.finalize()
    with pytest.raises(exceptions.WriterStateError):
        writer.write_byte(0)

    data = writer.getvalue()
    assert isinstance(data, bytes) and len(data) == 16


# Message framing
# ---------------
def test_definition_layout():
    record = WORKOUT_STEP.to_bytes(2)
    assert record[0] == 0x42
    assert record[1:3] == b'\x00\x00'     # reserved, little endian
    assert unpack('<H', record[3:5])[0] == 27
    assert record[5] == len(WORKOUT_STEP.field_defs) == 10
    assert len(record) == 6 + 3 * 10
    assert record[6:9] == bytes((254, 2, 0x84))    # message_index, uint16


def test_define_once():
    writer = FitWriter()
    writer.write_header()
    messages = FitMessageWriter(writer)

    assert not messages.is_defined(2)
    assert messages.define(2, WORKOUT_STEP)
    position = writer.position
    assert not messages.define(2, WORKOUT_STEP)
    assert writer.position == position

    with pytest.raises(exceptions.FitProtocolError):
        messages.define(2, WORKOUT)


def test_data_before_definition():
    writer = FitWriter()
    writer.write_header()
    messages = FitMessageWriter(writer)

    with pytest.raises(exceptions.FitProtocolError):
        messages.write(3, {})
    with pytest.raises(exceptions.FitProtocolError):
        messages.define(16, WORKOUT)

    messages.define(1, WORKOUT)
    with pytest.raises(exceptions.FitProtocolError):
        messages.write(1, {'no_such_field': 1})

    messages.write(1, {'wkt_name': 'x'})
    assert writer.position == 14 + len(WORKOUT.to_bytes(1)) + 1 + WORKOUT.data_size


# Workout encoder
# ---------------
def test_header_and_crcs():
    data = encode(INTERVALS)

    assert data[0] == 14
    assert data[8:12] == b'.FIT'
    assert unpack('<I', data[4:8])[0] == len(data) - 14 - 2
    assert fit.crc16(data[:12]) == unpack('<H', data[12:14])[0]
    assert fit.crc16(data[:-2]) == unpack('<H', data[-2:])[0]


def test_deterministic():
    assert encode(INTERVALS) == encode(INTERVALS)
    assert encode(INTERVALS) == encode(Workout.from_dict(INTERVALS))


def test_messages():
    messages = fit.read_messages(encode(INTERVALS))
    names = [name for name, __ in messages]
    assert names[:2] == ['file_id', 'workout']
    assert set(names[2:]) == {'workout_step'}

    file_id = messages[0][1]
    assert file_id['type'] == 'workout'
    assert file_id['manufacturer'] == 1
    assert file_id['serial_number'] == 12345
    assert file_id['time_created'] == CREATED_FIT

    workout = messages[1][1]
    assert workout['wkt_name'] == 'Intervals'
    assert workout['sport'] == 'running'
    assert workout['sub_sport'] == 'generic'
    assert workout['num_valid_steps'] == len(names) - 2


def test_definitions_written_once():
    definitions = [m for m in fit.gen_fit_messages(encode(INTERVALS))
                   if isinstance(m, _reading.DefinitionMessage)]
    assert [d.name for d in definitions] == ['file_id', 'workout',
                                             'workout_step']
    assert [d.local_message_type for d in definitions] == [0, 1, 2]


def test_repeat_unrolled():
    steps = steps_of(encode(INTERVALS))

    # warmup, 4 x (interval, recovery), repeat marker, cooldown
    assert len(steps) == 11
    assert [s['message_index'] for s in steps] == list(range(11))
    assert ([s['intensity'] for s in steps[1:9]] ==
            ['interval', 'recovery'] * 4)

    repeat = steps[9]
    assert repeat['duration_type'] == 'repeat_until_steps_cmplt'
    assert repeat['duration_value'] == 1     # first unrolled child
    assert repeat['custom_target_value_high'] == 4
    assert repeat['target_value'] == 4
    assert repeat['intensity'] == 'interval'

    assert steps[10]['notes'] == 'easy does it'
    assert steps[1]['wkt_step_name'] == '400m'


def test_nested_repeats():
    inner = {'type': 'repeat', 'repeat_count': 2, 'segments': [
        {'type': 'interval', 'duration_type': 'time', 'duration_value': 30}]}
    outer = {'type': 'repeat', 'repeat_count': 3, 'segments': [inner]}
    workout = Workout.from_dict({'title': 'n', 'segments': [outer]})

    plan = fit.plan_steps(workout)
    # each outer pass: 2 steps + inner marker; then the outer marker
    assert len(plan) == 3 * 3 + 1
    assert plan[2]['duration_value'] == 0
    assert plan[5]['duration_value'] == 3
    assert plan[-1]['duration_value'] == 0
    assert plan[-1]['custom_target_value_high'] == 3


def test_durations():
    warmup = one_step({'type': 'warmup', 'duration_type': 'time',
                       'duration_value': 600})
    assert warmup['duration_type'] == 'time'
    assert warmup['duration_value'] == 600000
    assert warmup['intensity'] == 'warmup'

    interval = one_step({'type': 'interval', 'duration_type': 'distance',
                         'duration_value': 400})
    assert interval['duration_type'] == 'distance'
    assert interval['duration_value'] == 40000


def test_pace_target():
    step = one_step({'type': 'interval', 'target_type': 'pace',
                     'target_pace_low': 240, 'target_pace_high': 255})
    assert step['target_type'] == 'speed'
    assert step['custom_target_value_low'] == 3922     # 255 s/km, slower
    assert step['custom_target_value_high'] == 4167    # 240 s/km, faster

    swapped = one_step({'type': 'interval', 'target_type': 'pace',
                        'target_pace_low': 255, 'target_pace_high': 240})
    assert swapped == step


def test_heart_rate_target():
    step = one_step({'type': 'steady', 'target_type': 'heart_rate_zone',
                     'target_zone': 3})
    assert step['target_type'] == 'heart_rate'
    assert step['custom_target_value_low'] == 170
    assert step['custom_target_value_high'] == 180
    assert step['intensity'] == 'active'

    unknown = one_step({'type': 'steady', 'target_type': 'heart_rate_zone',
                        'target_zone': 9})
    assert unknown['custom_target_value_low'] == 150
    assert unknown['custom_target_value_high'] == 200


def test_bad_segment_data_is_opened():
    step = one_step({'type': 'interval', 'duration_type': 'time',
                     'duration_value': -5, 'target_type': 'pace'})
    assert step['duration_type'] == 'open'
    assert step['duration_value'] == 0
    assert step['target_type'] == 'open'

    step = one_step({'type': 'steady', 'duration_type': 'time',
                     'duration_value': 'soon'})
    assert step['duration_type'] == 'open'


def test_open_enum_values():
    # wkt_step_duration open is 5 (3 would read as hr_greater_than)
    data = encode({'title': 't', 'workout_structure': {'segments': [
        {'type': 'steady'}]}})
    assert raw_step_field(data, 'duration_type') == bytes([5])
    assert raw_step_field(data, 'duration_value') == bytes(4)
    assert raw_step_field(data, 'target_type') == bytes([2])


def test_degenerate_repeats():
    no_count = one_step({'type': 'repeat', 'repeat_count': 0, 'segments': [
        {'type': 'interval', 'duration_type': 'time', 'duration_value': 30}]})
    assert no_count['duration_type'] == 'open'

    no_children = one_step({'type': 'repeat', 'repeat_count': 3})
    assert no_children['duration_type'] == 'open'


def test_cycle_dropped():
    loop = {'type': 'repeat', 'repeat_count': 2, 'segments': [
        {'type': 'interval', 'duration_type': 'time', 'duration_value': 30}]}
    loop['segments'].append(loop)

    workout = Workout.from_dict({'title': 'c', 'segments': [loop]})
    repeat, = workout.segments
    assert repeat.count == 2 and len(repeat.children) == 1
    assert len(fit.plan_steps(workout)) == 3


@pytest.mark.parametrize('structure', [None, {}, {'segments': []}])
def test_fallback(structure):
    steps = steps_of(encode({'title': 'Easy', 'workout_structure': structure,
                             'target_duration_minutes': 40}))
    assert [s['intensity'] for s in steps] == ['warmup', 'active', 'cooldown']
    assert [s['duration_value'] for s in steps] == [240000, 1920000, 240000]
    assert {s['target_type'] for s in steps} == {'open'}


def test_fallback_default_duration():
    steps = steps_of(encode({'title': 'Easy'}))
    assert [s['duration_value'] for s in steps] == [180000, 1440000, 180000]


@pytest.mark.parametrize('structure', [
    '{"segments": []}',
    ['not', 'a', 'mapping'],
    5,
    {'segments': 'abc'},
    {'segments': 7},
])
def test_malformed_structure_falls_back(structure):
    steps = steps_of(encode({'title': 't', 'workout_structure': structure}))
    assert [s['intensity'] for s in steps] == ['warmup', 'active', 'cooldown']


def test_malformed_repeat_children():
    step = one_step({'type': 'repeat', 'repeat_count': 2, 'segments': 7})
    assert step['duration_type'] == 'open'


def test_created_at_is_used():
    data = fit.encode_workout({'title': 'x', 'created_at': CREATED})
    file_id = fit.read_messages(data)[0][1]
    assert file_id['time_created'] == CREATED_FIT


def test_no_creation_time():
    first = fit.encode_workout({'title': 'x'})
    second = fit.encode_workout({'title': 'x'})
    assert first == second

    file_id = fit.read_messages(first)[0][1]
    assert file_id.get('time_created') is None


def test_long_names():
    data = encode({'title': 'T' * 200})
    workout = fit.read_messages(data)[1][1]
    assert workout['wkt_name'] == 'T' * 63


def test_fit_filename():
    assert fit.fit_filename('Tempo run #3') == 'Tempo_run__3.fit'
    assert fit.fit_filename('') == 'workout.fit'


# Reader
# ------
def test_reader_rejects_corruption():
    data = bytearray(encode(INTERVALS))
    data[40] ^= 0xFF
    with pytest.raises(exceptions.FITCRCError):
        fit.read_messages(bytes(data))


def test_reader_rejects_bad_header():
    data = bytearray(encode(INTERVALS))
    data[12] ^= 0xFF
    with pytest.raises(exceptions.FITCRCError):
        fit.read_messages(bytes(data))

    with pytest.raises(exceptions.InvalidFileError):
        fit.read_messages(b'<?xml version="1.0"?><nope/>')
