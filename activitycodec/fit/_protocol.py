#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Implement the writing side of the Flexible and Interoperable data Transfer
(FIT) protocol.

There are two layers here:

    + `FitWriter`: an append-only little-endian byte sink that knows about
      the file header, the data size field and the two CRCs.
    + `FitMessageWriter`: record framing on top of a `FitWriter`, i.e.
      definition messages (schemas) and the data messages that rely on them.

"""
from struct import pack

from activitycodec.fit._profile import (
    BASE_TYPES_BY_NAME, CRC_SIZE, HEADER_SIZE, MESG_NUMS, MESSAGE_TYPES,
    PROFILE_VERSION, PROTOCOL_VERSION)
from activitycodec._util.exceptions import FitProtocolError, WriterStateError


N_LOCAL_MESSAGE_TYPES = 16

DEFINITION_FLAG = 0x40
LOCAL_TYPE_MASK = 0x0F

ARCHITECTURE_LITTLE_ENDIAN = 0

CRC_TABLE = (
    0x0000, 0xCC01, 0xD801, 0x1400, 0xF001, 0x3C00, 0x2800, 0xE401,
    0xA001, 0x6C00, 0x7800, 0xB401, 0x5000, 0x9C01, 0x8801, 0x4400,
)


def crc16(data, crc=0):
    """From the FIT SDK release 20.03.00

    The CRC is computed four bits at a time: the lower nibble of each byte
    first, then the upper nibble. Pass a previous result as `crc` to
    continue a running checksum.
    """
    for byte in data:
        tmp = CRC_TABLE[crc & 0xF]
        crc = (crc >> 4) & 0x0FFF
        crc = crc ^ tmp ^ CRC_TABLE[byte & 0xF]

        tmp = CRC_TABLE[crc & 0xF]
        crc = (crc >> 4) & 0x0FFF
        crc = crc ^ tmp ^ CRC_TABLE[(byte >> 4) & 0xF]
    return crc


def fixed_string(value, size):
    """Pack `value` into exactly `size` bytes.

    UTF-8 encoded, truncated to ``size - 1`` bytes (never splitting a
    character), NUL terminated and zero padded. Readers rely on this width
    matching the one declared in the definition message.

        >>> fixed_string('Tempo Run', 12)
        b'Tempo Run\\x00\\x00\\x00'
    """
    if size < 1:
        raise ValueError('fixed strings need room for the NUL terminator')
    text = '' if value is None else str(value)
    encoded = text.encode('utf-8')[:size - 1]
    encoded = encoded.decode('utf-8', 'ignore').encode('utf-8')
    return encoded + b'\x00' * (size - len(encoded))


class FitWriter:
    """A single use, append-only buffer for one FIT file.

    Lifecycle: write the header, append records, `finalize` exactly once
    (patches the data size and header CRC, appends the file CRC), then
    drain with `getvalue`. Anything else raises `WriterStateError`.
    """
    __slots__ = ('_buffer', '_finalized')

    def __init__(self):
        self._buffer = bytearray()
        self._finalized = False

    @property
    def position(self):
        """Bytes written so far."""
        return len(self._buffer)

    @property
    def finalized(self):
        return self._finalized

    def write_byte(self, value):
        self._check_open()
        self._buffer.append(value)

    def write_bytes(self, values):
        self._check_open()
        self._buffer.extend(values)

    def write_uint16_le(self, value):
        self.write_bytes(pack('<H', value))

    def write_uint32_le(self, value):
        self.write_bytes(pack('<I', value))

    def write_fixed_string(self, value, size):
        """Append `value` as a fixed width string; returns the bytes written."""
        packed = fixed_string(value, size)
        self.write_bytes(packed)
        return packed

    def write_header(self):
        """Write the 14 byte file header, with placeholders for data size
        and CRC, at the very start of the buffer."""
        if self._buffer:
            raise WriterStateError('the file header must be written first')

        self.write_byte(HEADER_SIZE)
        self.write_byte(PROTOCOL_VERSION)
        self.write_uint16_le(PROFILE_VERSION)
        self.write_uint32_le(0)      # data size, patched by finalize()
        self.write_bytes(b'.FIT')
        self.write_uint16_le(0)      # header CRC, patched by finalize()

    def finalize(self):
        self._check_open()
        if len(self._buffer) < HEADER_SIZE:
            raise WriterStateError('no file header has been written')

        data_size = len(self._buffer) - HEADER_SIZE
        self._buffer[4:8] = pack('<I', data_size)

        header_crc = crc16(self._buffer[:HEADER_SIZE - CRC_SIZE])
        self._buffer[12:14] = pack('<H', header_crc)

        file_crc = crc16(self._buffer)
        self._buffer.extend(pack('<H', file_crc))
        self._finalized = True

    def getvalue(self):
        """The finished file as immutable bytes."""
        if not self._finalized:
            raise WriterStateError('finalize() has not been called')
        return bytes(self._buffer)

    def _check_open(self):
        if self._finalized:
            raise WriterStateError('writer has already been finalized')


class FieldDefinition:
    """From the FIT SDK release 20.03.00

    Field Definition Contents
    -------------------------

    ======  =================  ===============================================
     Byte    Name               Description
    ======  =================  ===============================================
      0     Field definition   Defined in the global FIT profile for the
            number             specified FIT message.
      1     Size               Size (in bytes) of the specified FIT message's
                               field.
      2     Base type          Base type of the specified FIT message's field.
    ======  =================  ===============================================

    """
    __slots__ = ('number', 'name', 'size', 'base_type')

    def __init__(self, number, name, base_type, size=None):
        self.number = number
        self.name = name
        self.base_type = base_type
        self.size = base_type.size if size is None else size

    def __eq__(self, other):
        return (isinstance(other, FieldDefinition) and
                (self.number, self.size, self.base_type.identifier) ==
                (other.number, other.size, other.base_type.identifier))

    def __hash__(self):
        return hash((self.number, self.size, self.base_type.identifier))

    def __repr__(self):
        return 'FieldDefinition(%d, %r, %s[%d])' % (
            self.number, self.name, self.base_type.name, self.size)

    def to_bytes(self):
        return pack('<3B', self.number, self.size, self.base_type.identifier)

    def pack(self, value):
        """Pack a single value into exactly `size` bytes."""
        if self.base_type.name == 'string':
            return fixed_string(value, self.size)
        if value is None:
            value = self.base_type.invalid
        return pack('<' + self.base_type.fmt, value)


class MessageDefinition:
    """The schema of one global FIT message, as laid out in this file.

    Built from the profile so that field names can be used when writing
    data messages.
    """
    __slots__ = ('name', 'global_mesg_num', 'field_defs')

    def __init__(self, name, field_defs):
        self.name = name
        self.global_mesg_num = MESG_NUMS[name]
        self.field_defs = tuple(field_defs)

    @classmethod
    def from_profile(cls, name, fields):
        """`fields` is a sequence of (field_name, size or None) pairs."""
        by_name = {data['field_name']: (num, data)
                   for num, data in MESSAGE_TYPES[name].items()}
        field_defs = []
        for field_name, size in fields:
            num, data = by_name[field_name]
            base_type = BASE_TYPES_BY_NAME[data['field_type']]
            field_defs.append(FieldDefinition(num, field_name, base_type, size))
        return cls(name, field_defs)

    def __eq__(self, other):
        return (isinstance(other, MessageDefinition) and
                self.global_mesg_num == other.global_mesg_num and
                self.field_defs == other.field_defs)

    def __hash__(self):
        return hash((self.global_mesg_num, self.field_defs))

    @property
    def data_size(self):
        return sum(field_def.size for field_def in self.field_defs)

    def to_bytes(self, local_message_type):
        """From the FIT SDK release 20.03.00

        ======  =======================  =============  =====================
        Byte    Description                 Length      Value
        ======  =======================  =============  =====================
          0     Reserved                       1         0
          1     Architecture                   1         0: little endian
         2-3    Global message number          2         Unique to each message
          4     Fields                         1         Number of fields
          5     Field definition(s)            3         (per field)
        ======  =======================  =============  =====================

        The record header byte comes first.
        """
        header = DEFINITION_FLAG | (local_message_type & LOCAL_TYPE_MASK)
        content = pack('<3BHB', header, 0, ARCHITECTURE_LITTLE_ENDIAN,
                       self.global_mesg_num, len(self.field_defs))
        return content + b''.join(f.to_bytes() for f in self.field_defs)

    def pack(self, values):
        """Pack a {field_name: value} mapping in definition order.

        Fields missing from `values` are written as the base type's invalid
        value.
        """
        unknown = set(values) - {f.name for f in self.field_defs}
        if unknown:
            raise FitProtocolError('%s has no field(s) %s' % (
                self.name, ', '.join(sorted(unknown))))
        return b''.join(f.pack(values.get(f.name)) for f in self.field_defs)


class FitMessageWriter:
    """Frame definition and data messages onto a `FitWriter`.

    Local message types are slots 0-15. A slot is defined once, the first
    time it is used; data messages for that slot are then packed against
    that definition. Redefining a slot with a *different* schema is refused
    because already written data would be ambiguous to a reader.
    """
    __slots__ = ('writer', 'local_messages')

    def __init__(self, writer):
        self.writer = writer
        self.local_messages = [None] * N_LOCAL_MESSAGE_TYPES

    def is_defined(self, local_message_type):
        return self.local_messages[local_message_type] is not None

    def define(self, local_message_type, definition):
        """Write a definition message unless the slot already holds it."""
        self._check_slot(local_message_type)

        current = self.local_messages[local_message_type]
        if current is not None:
            if current != definition:
                raise FitProtocolError(
                    'local message type %d already carries %s data' % (
                        local_message_type, current.name))
            return False

        self.writer.write_bytes(definition.to_bytes(local_message_type))
        self.local_messages[local_message_type] = definition
        return True

    def write(self, local_message_type, values):
        """Write a data message against the slot's definition."""
        self._check_slot(local_message_type)

        definition = self.local_messages[local_message_type]
        if definition is None:
            raise FitProtocolError(
                'no definition for local message type %d' % local_message_type)

        payload = definition.pack(values)
        self.writer.write_byte(local_message_type & LOCAL_TYPE_MASK)
        self.writer.write_bytes(payload)

    @staticmethod
    def _check_slot(local_message_type):
        if not 0 <= local_message_type < N_LOCAL_MESSAGE_TYPES:
            raise FitProtocolError(
                'local message type must be 0-15, got %r' % local_message_type)
