#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Read FIT files back, strictly.

This is deliberately lean: it understands normal record headers, little and
big endian definitions and the messages in `_profile`, and it checks both
CRCs. It exists so that written files can be verified (see ``acodec
inspect`` and the tests), not as a general purpose FIT decoder.

"""
from io import BytesIO
from struct import unpack

from activitycodec.fit._profile import (
    BASE_TYPE_BYTE, BASE_TYPES, CRC_SIZE, GLOBAL_MESG_NUMS, HEADER_SIZE,
    MESSAGE_TYPES, TYPES_INFO)
from activitycodec.fit._protocol import crc16, DEFINITION_FLAG, LOCAL_TYPE_MASK
from activitycodec._util.exceptions import (
    FITCRCError, FITFileHeaderError, FITMessageHeaderError, InvalidFileError)


EMPTY_DICT = {}    # single instance to save some memory


class FitFile:
    """A file-like object specific to *.fit files.

    Attributes
    ----------
    bytes_left : int
        Bytes left to be read in the data section. Initialised to its proper
        value when the file header is read.
    local_messages : dict
        Definition messages parsed from the file, by local message type.
    profile_version, protocol_version : float
        File version information taken from the file header.
    reader : io.BytesIO
        The whole file, in memory.
    """
    def __init__(self, data):
        self.reader = BytesIO(data)
        self.size = len(data)
        self.bytes_left = 0
        self.local_messages = {}

    def read(self, size):
        """Read from the file, keeping track of bytes left."""
        self.bytes_left -= size
        data = self.reader.read(size)
        if len(data) != size:
            raise FITMessageHeaderError('unexpected end of file')
        return data

    def set_version_info(self, version_info):
        """Decode version info the same way the FIT SDK does."""
        prot, prof = version_info
        self.protocol_version = float(
            '{:.0f}.{:.0f}'.format(prot >> 4, prot & ((1 << 4) - 1)))
        self.profile_version = float(
            '{:.0f}.{:.0f}'.format(prof // 100, prof % 100))


class DefinitionMessage:
    __slots__ = ('local_message_type', 'name', 'global_mesg_num', 'field_defs')

    def __init__(self, local_message_type, fitfile):
        self.local_message_type = local_message_type

        __, big_endian = unpack('<2B', fitfile.read(2))   # ignore reserved
        endian = '>' if big_endian else '<'

        self.global_mesg_num, field_count = unpack(endian + 'HB',
                                                   fitfile.read(3))
        self.name = GLOBAL_MESG_NUMS.get(self.global_mesg_num, 'unknown')
        message_type = MESSAGE_TYPES.get(self.name, EMPTY_DICT)

        self.field_defs = [FieldDefinition(fitfile, message_type, endian)
                           for _ in range(field_count)]

        fitfile.local_messages[local_message_type] = self


class DataMessage:
    __slots__ = ('local_message_type', 'name', 'fields')

    def __init__(self, local_message_type, fitfile):
        self.local_message_type = local_message_type

        def_message = fitfile.local_messages.get(local_message_type)
        if def_message is None:
            raise FITMessageHeaderError('invalid local message type (%d)' %
                                        local_message_type)

        self.name = def_message.name
        self.fields = {}
        for field_def in def_message.field_defs:
            value = field_def.read(fitfile)
            if value is not None:
                self.fields[field_def.name] = value

    def decode(self):
        """Like `fields`, with enum values swapped for their names."""
        return {name: TYPES_INFO.get(name, EMPTY_DICT).get(value, value)
                for name, value in self.fields.items()}


class FieldDefinition:
    __slots__ = ('number', 'size', 'base_type', 'name', 'endian')

    def __init__(self, fitfile, message_type, endian):
        # NOTE: reading single bytes, so no need to apply endianness here.
        self.number, self.size, base_type_num = unpack('<3B', fitfile.read(3))
        self.base_type = BASE_TYPES.get(base_type_num, BASE_TYPE_BYTE)
        data = message_type.get(self.number, EMPTY_DICT)
        self.name = data.get('field_name', 'unknown_%d' % self.number)
        self.endian = endian

    @property
    def fmt(self):
        """Format for struct.unpacking."""
        if self.base_type.name in ('string', 'byte'):
            return '%ds' % self.size
        n_values = self.size // self.base_type.size
        return '{0}{1}{2}'.format(self.endian, n_values, self.base_type.fmt)

    def read(self, fitfile):
        raw = fitfile.read(self.size)
        if self.base_type.name in ('string', 'byte'):
            if self.base_type.name == 'byte':
                return raw
            return self.base_type.parse(raw)
        value, *ignore = unpack(self.fmt, raw)
        return self.base_type.parse(value)      # checks validity


def read_file_header(fitfile, data):
    """Read and check the file header, modifying `fitfile` in place.

    Both CRCs are checked here, before any message is read, so a corrupt
    file never yields a partial result.
    """
    if len(data) < HEADER_SIZE + CRC_SIZE or data[8:12] != b'.FIT':
        raise InvalidFileError('fit')

    header_data = fitfile.read(12)
    header_size, *version_info, data_size = unpack('<2BHI4x', header_data)
    fitfile.set_version_info(version_info)

    if header_size != HEADER_SIZE:
        raise FITFileHeaderError('irregular file header size (%d)' %
                                 header_size)

    stored_header_crc, = unpack('<H', fitfile.read(2))
    computed = crc16(data[:HEADER_SIZE - CRC_SIZE])
    if stored_header_crc != 0 and stored_header_crc != computed:
        raise FITCRCError('header', stored_header_crc, computed)

    if data_size != len(data) - HEADER_SIZE - CRC_SIZE:
        raise FITFileHeaderError(
            'data size field says %d bytes, file holds %d' % (
                data_size, len(data) - HEADER_SIZE - CRC_SIZE))

    stored_file_crc, = unpack('<H', data[-CRC_SIZE:])
    computed = crc16(data[:-CRC_SIZE])
    if stored_file_crc != computed:
        raise FITCRCError('file', stored_file_crc, computed)

    fitfile.bytes_left = data_size


def read_fit_message(fitfile):
    """Parse a message (header + contents)."""
    header_byte, = unpack('<B', fitfile.read(1))
    if header_byte & 0x80:
        raise FITMessageHeaderError('compressed timestamp headers '
                                    'are not supported')

    local_message_type = header_byte & LOCAL_TYPE_MASK
    if header_byte & DEFINITION_FLAG:
        return DefinitionMessage(local_message_type, fitfile)
    return DataMessage(local_message_type, fitfile)


def _as_bytes(source):
    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source)
    if hasattr(source, 'read'):
        return source.read()
    with open(source, 'rb') as f:
        return f.read()


def gen_fit_messages(source):
    """Generator function for iterating over *.fit file messages.

    Parameters
    ----------
    source : bytes, file-like or str
        FIT file contents, an open binary file or a path.

    Yields
    ------
    DefinitionMessage or DataMessage
        Parsed messages from `source`, in file order.
    """
    data = _as_bytes(source)
    fitfile = FitFile(data)
    read_file_header(fitfile, data)     # inplace changes

    while fitfile.bytes_left > 0:
        yield read_fit_message(fitfile)

    if fitfile.bytes_left < 0:
        raise FITMessageHeaderError('last message overruns the data section')


def read_messages(source):
    """All data messages as (name, {field_name: value}) pairs."""
    return [(message.name, message.decode())
            for message in gen_fit_messages(source)
            if isinstance(message, DataMessage)]
