#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
The slice of the FIT SDK "Profile.xlsx" needed to write (and read back)
workout files.

Only three global messages are covered: file_id, workout and workout_step.

"""
from math import isnan
import struct


PROTOCOL_VERSION = 0x20     # 2.0
PROFILE_VERSION = 2069      # 20.69

HEADER_SIZE = 14
CRC_SIZE = 2

# Seconds between the Unix epoch and the FIT epoch (1989-12-31T00:00:00Z).
FIT_EPOCH_OFFSET = 631065600


class BaseType:
    __slots__ = ('name', 'identifier', 'fmt', 'invalid', 'parse')

    def __init__(self, **kwargs):
        for name, value in kwargs.items():
            setattr(self, name, value)

    @property
    def size(self):
        return struct.calcsize(self.fmt)


BASE_TYPE_BYTE = BaseType(name='byte', identifier=0x0D, fmt='B', invalid=0xFF,
                          parse=lambda x: None if x == 0xFF else x)

# Decide how invalid values are to be handled with the `parse` attribute.
BASE_TYPES = {
    0x00: BaseType(name='enum',    identifier=0x00, fmt='B', invalid=0xFF, parse=lambda x: None if x == 0xFF else x),
    0x01: BaseType(name='sint8',   identifier=0x01, fmt='b', invalid=0x7F, parse=lambda x: None if x == 0x7F else x),
    0x02: BaseType(name='uint8',   identifier=0x02, fmt='B', invalid=0xFF, parse=lambda x: None if x == 0xFF else x),
    0x83: BaseType(name='sint16',  identifier=0x83, fmt='h', invalid=0x7FFF, parse=lambda x: None if x == 0x7FFF else x),
    0x84: BaseType(name='uint16',  identifier=0x84, fmt='H', invalid=0xFFFF, parse=lambda x: None if x == 0xFFFF else x),
    0x85: BaseType(name='sint32',  identifier=0x85, fmt='i', invalid=0x7FFFFFFF, parse=lambda x: None if x == 0x7FFFFFFF else x),
    0x86: BaseType(name='uint32',  identifier=0x86, fmt='I', invalid=0xFFFFFFFF, parse=lambda x: None if x == 0xFFFFFFFF else x),
    0x07: BaseType(name='string',  identifier=0x07, fmt='s', invalid=b'', parse=lambda x: x.split(b'\x00')[0].decode('utf-8', 'replace') or None),
    0x88: BaseType(name='float32', identifier=0x88, fmt='f', invalid=None, parse=lambda x: None if isnan(x) else x),
    0x89: BaseType(name='float64', identifier=0x89, fmt='d', invalid=None, parse=lambda x: None if isnan(x) else x),
    0x0A: BaseType(name='uint8z',  identifier=0x0A, fmt='B', invalid=0x00, parse=lambda x: None if x == 0x0 else x),
    0x8B: BaseType(name='uint16z', identifier=0x8B, fmt='H', invalid=0x0000, parse=lambda x: None if x == 0x0 else x),
    0x8C: BaseType(name='uint32z', identifier=0x8C, fmt='I', invalid=0x00000000, parse=lambda x: None if x == 0x0 else x),
    0x0D: BASE_TYPE_BYTE}

BASE_TYPES_BY_NAME = {bt.name: bt for bt in BASE_TYPES.values()}


GLOBAL_MESG_NUMS = {
    0: 'file_id',
    26: 'workout',
    27: 'workout_step',
}
MESG_NUMS = {name: num for num, name in GLOBAL_MESG_NUMS.items()}


# Field definitions by message name, then field definition number.
MESSAGE_TYPES = {
    'file_id': {
        0: {'field_name': 'type', 'field_type': 'enum'},
        1: {'field_name': 'manufacturer', 'field_type': 'uint16'},
        2: {'field_name': 'product', 'field_type': 'uint16'},
        3: {'field_name': 'serial_number', 'field_type': 'uint32z'},
        4: {'field_name': 'time_created', 'field_type': 'uint32'},
    },
    'workout': {
        4: {'field_name': 'sport', 'field_type': 'enum'},
        6: {'field_name': 'num_valid_steps', 'field_type': 'uint16'},
        8: {'field_name': 'wkt_name', 'field_type': 'string'},
        11: {'field_name': 'sub_sport', 'field_type': 'enum'},
    },
    'workout_step': {
        254: {'field_name': 'message_index', 'field_type': 'uint16'},
        0: {'field_name': 'wkt_step_name', 'field_type': 'string'},
        1: {'field_name': 'duration_type', 'field_type': 'enum'},
        2: {'field_name': 'duration_value', 'field_type': 'uint32'},
        3: {'field_name': 'target_type', 'field_type': 'enum'},
        4: {'field_name': 'target_value', 'field_type': 'uint32'},
        5: {'field_name': 'custom_target_value_low', 'field_type': 'uint32'},
        6: {'field_name': 'custom_target_value_high', 'field_type': 'uint32'},
        7: {'field_name': 'intensity', 'field_type': 'enum'},
        8: {'field_name': 'notes', 'field_type': 'string'},
    },
}


# Types
# -----
FILE_TYPE_WORKOUT = 5

MANUFACTURER_GARMIN = 1

SPORT_RUNNING = 1
SUB_SPORT_GENERIC = 0

WKT_STEP_DURATION = {
    'time': 0,
    'distance': 1,
    'open': 5,
    'repeat_until_steps_cmplt': 6,
}

WKT_STEP_TARGET = {
    'speed': 0,
    'heart_rate': 1,
    'open': 2,
}

INTENSITY = {
    'active': 0,
    'rest': 1,
    'warmup': 2,
    'cooldown': 3,
    'recovery': 4,
    'interval': 5,
}

# Heart rate zones as percent of maximum heart rate. Custom heart rate
# targets are written with the +100 offset of the FIT convention.
HR_ZONE_PERCENT = {
    1: (50, 60),
    2: (60, 70),
    3: (70, 80),
    4: (80, 90),
    5: (90, 100),
}
HR_ZONE_PERCENT_DEFAULT = (50, 100)
HR_PERCENT_OFFSET = 100

# Decoded names for enum fields, by field name.
TYPES_INFO = {
    'type': {FILE_TYPE_WORKOUT: 'workout'},
    'sport': {SPORT_RUNNING: 'running'},
    'sub_sport': {SUB_SPORT_GENERIC: 'generic'},
    'duration_type': {v: k for k, v in WKT_STEP_DURATION.items()},
    'target_type': {v: k for k, v in WKT_STEP_TARGET.items()},
    'intensity': {v: k for k, v in INTENSITY.items()},
}
