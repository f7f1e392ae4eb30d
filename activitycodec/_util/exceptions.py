#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Exceptions for this package.

"""


class ActivityCodecError(Exception):
    """Base exception."""
    _default_message = ''

    def __init__(self, message=None):
        super().__init__(message if message else self._default_message)


class InvalidFileError(ActivityCodecError):
    def __init__(self, fmt):
        determiner = 'an' if fmt[0] in ('aeiou' + 's') else 'a'  # grammar
        message = "this doesn't look like %s %s file!" % (determiner, fmt)
        super().__init__(message)


class RequiredColumnError(ActivityCodecError):
    def __init__(self, column, cls=None):
        if cls is None:
            message = '{!r} column not found'.format(column)
        else:
            message = '{!r} column should be of type {!s}'.format(column, cls)
        super().__init__(message)


# Exceptions specific to the tcx subpackage
# -----------------------------------------
class TCXDecodeError(ActivityCodecError):
    """A TCX document could not be turned into activities."""


class MalformedXml(TCXDecodeError):
    def __init__(self, reason=None):
        message = 'invalid TCX file: malformed XML'
        if reason:
            message += ' (%s)' % reason
        super().__init__(message)


class MissingRootElement(TCXDecodeError):
    _default_message = 'invalid TCX file: missing TrainingCenterDatabase element'


class MissingActivitiesElement(TCXDecodeError):
    _default_message = 'invalid TCX file: missing Activities element'


class NoActivitiesFound(TCXDecodeError):
    _default_message = 'no activities found in TCX file'


# Exceptions specific to the fit subpackage
# -----------------------------------------
class FitProtocolError(ActivityCodecError):
    """Definition and data messages were paired incorrectly."""


class WriterStateError(ActivityCodecError):
    """A FitWriter was used outside of its write-finalize-drain lifecycle."""


class FITFileHeaderError(ActivityCodecError):
    pass


class FITMessageHeaderError(ActivityCodecError):
    pass


class FITCRCError(ActivityCodecError):
    def __init__(self, what, want, got):
        message = '%s CRC mismatch: stored 0x%04X, computed 0x%04X' % (
            what, want, got)
        super().__init__(message)
        self.want, self.got = want, got
