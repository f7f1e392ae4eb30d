#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
General utilities to be used internally.

"""
from datetime import datetime
import re

import pytz
from pandas import Timestamp


TZ_UTC = pytz.timezone('UTC')

NON_ALPHANUMERIC = re.compile(r'[^a-zA-Z0-9]')


def to_utc(value):
    """Coerce a datetime-ish value to an aware UTC datetime (or None).

    Accepts datetimes (naive ones are taken to be UTC, as Garmin stores
    all times in UTC), pandas Timestamps and ISO 8601 strings. Anything
    unparseable gives None rather than raising.
    """
    if value is None or value == '':
        return None

    if isinstance(value, str):
        try:
            value = Timestamp(value.strip())
        except ValueError:
            return None
        if value is None or value != value:     # NaT
            return None

    if isinstance(value, Timestamp):
        value = value.to_pydatetime()

    if not isinstance(value, datetime):
        return None

    if value.tzinfo is None:
        return TZ_UTC.localize(value)
    return value.astimezone(TZ_UTC)


def round_half_up(value):
    """Round to the nearest integer, halves away from zero.

    The builtin `round` rounds halves to even, which would report a mean
    heart rate of 152.5 as 152.
    """
    if value < 0:
        return -round_half_up(-value)
    return int(value + 0.5)


def slugify(text, *, default='workout'):
    """Replace anything but ASCII letters and digits with underscores."""
    slug = NON_ALPHANUMERIC.sub('_', text or '')
    return slug if slug.strip('_') else default
