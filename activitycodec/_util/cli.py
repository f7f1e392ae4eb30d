#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
main is installed as the `acodec` console_script with this package.

    acodec tcx FILE [--output CSV] [--summary]
    acodec workout JSON [--output FIT]
    acodec inspect FIT

"""
from argparse import ArgumentParser
from functools import partial
from os import path
import json
import sys

from loguru import logger

from activitycodec import canonical, fit, tcx
from activitycodec._util.exceptions import ActivityCodecError


LOG_FORMAT = ('<level>{level: <8}</level> | '
              '<cyan>{name}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>')


def configure_logging(verbose):
    logger.remove()
    logger.add(sys.stderr, format=LOG_FORMAT,
               level='DEBUG' if verbose else 'INFO')
    logger.enable('activitycodec')


def decode_tcx(args):
    activities = tcx.read(args.input)

    if args.summary:
        for activity in activities:
            record = canonical.from_tcx(activity)
            print('{}  {}  {}  {:.0f} s  {:.0f} m'.format(
                record.external_id, record.activity_type.value, record.title,
                activity.total_time_seconds, activity.distance_meters))
        return 0

    data = activities[0].to_frame()
    write = partial(data.to_csv,
                    na_rep='NA', index_label='time', encoding='utf-8')
    if args.output is None:
        print(write())
    else:
        write(args.output)
    return 0


def encode_workout(args):
    with open(args.input, encoding='utf-8') as f:
        workout = json.load(f)

    data = fit.encode_workout(workout)
    output = args.output or path.join(
        path.dirname(args.input), fit.fit_filename(workout.get('title')))
    with open(output, 'wb') as f:
        f.write(data)

    logger.info('wrote {} ({} bytes)', output, len(data))
    return 0


def inspect_fit(args):
    for name, fields in fit.read_messages(args.input):
        print(name, fields)
    logger.info('{}: CRCs ok', args.input)
    return 0


def make_parser():
    parser = ArgumentParser(description='read and write activity files')
    parser.add_argument('-v', '--verbose',
                        action='store_true',
                        help='log debug messages')
    commands = parser.add_subparsers(dest='command', metavar='command')
    commands.required = True

    sub = commands.add_parser('tcx', help='decode a TCX file')
    sub.add_argument('input', type=str, help='raw file to read')
    sub.add_argument('--output',
                     type=str,
                     metavar='filename',
                     default=None,
                     help='optional; CSV file to write trackpoints to')
    sub.add_argument('--summary',
                     action='store_true',
                     help='print one line per activity instead')
    sub.set_defaults(func=decode_tcx)

    sub = commands.add_parser('workout', help='encode a workout as FIT')
    sub.add_argument('input', type=str, help='workout JSON document')
    sub.add_argument('--output',
                     type=str,
                     metavar='filename',
                     default=None,
                     help='optional; defaults to <title>.fit')
    sub.set_defaults(func=encode_workout)

    sub = commands.add_parser('inspect', help='check and list a FIT file')
    sub.add_argument('input', type=str, help='FIT file to read')
    sub.set_defaults(func=inspect_fit)

    return parser


def main(argv=None):
    args = make_parser().parse_args(argv)
    configure_logging(args.verbose)
    try:
        return args.func(args)
    except ActivityCodecError as e:
        logger.error('{}: {}', args.input, e)
        return 1


if __name__ == '__main__':
    sys.exit(main())
